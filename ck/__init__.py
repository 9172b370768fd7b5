# Core type aliases for the Chicken Knife data model.
# Literals are plain Python values (int, float, str) plus the Nil singleton;
# pairs, builtins and compiled functions have their own types in ck.types.values.
#
# Naming guidance:
# - CkValue:  anything that can sit on the operand stack or in a global slot.
# - SymbolId: dense integer index into the symbol table and the global store.

from typing import Any

__version__ = "0.1.0"

# Runtime value alias
CkValue = Any
# Symbol ids double as global store indices
SymbolId = int
