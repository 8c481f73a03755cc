# Importing the modules registers the backends.
from . import dummy, openai  # noqa: F401
