from .models import Actor

__all__ = ["Actor"]
