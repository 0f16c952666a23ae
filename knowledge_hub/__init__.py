"""Knowledge hub: split documents into KB articles, allocate identifiers, search them."""

__version__ = "0.1.0"
