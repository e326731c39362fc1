from .books import BooksRepository, BookValidationError
from .users import UsersRepository
from . import models

__all__ = ["BooksRepository", "BookValidationError", "UsersRepository", "models"]
