
class CkError(Exception):
    """ Base class for all Chicken Knife errors"""
    pass

# Parser boundary. Incomplete and fatal input must stay distinguishable.

class CkParseError(CkError):
    """ Raised when source text cannot be compiled (yet)"""

class CkIncompleteInput(CkParseError):
    """ Raised when more input is needed to finish a string or block"""

class CkSyntaxError(CkParseError):
    """ Raised when source text can never compile, e.g. an unmatched ')'"""

# Runtime. All of these abort the current top-level function only.

class CkRuntimeError(CkError):
    """ Base class for errors raised while running compiled code"""

class CkStackUnderflow(CkRuntimeError):
    """ Raised when an operation needs more operands than the stack holds"""

class CkUndefinedApplication(CkRuntimeError):
    """ Raised when a called symbol is bound to neither a function nor a builtin"""

class CkTypeError(CkRuntimeError):
    """ Raised when the operands of a builtin have the wrong types"""

class CkZeroDivisionError(CkRuntimeError):
    """ Raised on integer division or modulo by zero"""

class CkEndOfInput(CkRuntimeError):
    """ Raised when read/readln find standard input exhausted"""

class CkCallDepthExceeded(CkRuntimeError):
    """ Raised when nested function calls exceed the configured limit"""
