from memora.consts import VERSION

__version__ = VERSION
