# Domain Stats Package
from .models import ReviewStats

__all__ = ["ReviewStats"]
