"""Host IR consumed by the analyzer — type descriptors and function bodies."""

from .ty import *
from .body import *
