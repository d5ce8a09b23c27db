"""Error taxonomy shared by every layer."""


class MemoraError(Exception):
    """Base class for all Memora errors."""


class InvalidRatingError(MemoraError, ValueError):
    def __init__(self, rating: object):
        self.rating = rating
        super().__init__(f"Rating must be an integer between 0 and 5, got {rating!r}")


class CardNotFoundError(MemoraError, KeyError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card with ID {self.card_id} not found"


class StoreCorruptedError(MemoraError):
    """The store exists but its content cannot be read back."""


class SessionFinishedError(MemoraError):
    """A rating was submitted after the session ran out of cards."""


class ConfigError(MemoraError):
    """Settings from the environment, a config file or the command line are invalid."""
