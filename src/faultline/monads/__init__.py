"""Result and Option carriers with context attachment.

Example:
    >>> from faultline.monads import Ok, Err, Option
    >>> Ok(1).context(Parse.Context(line=3))
    Ok(1)
"""

from .option import NOTHING, Option, Some
from .result import Err, Ok, Result, try_call

__all__ = [
    "Result",
    "Ok",
    "Err",
    "try_call",
    "Option",
    "Some",
    "NOTHING",
]
