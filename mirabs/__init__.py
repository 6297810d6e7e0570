"""mirabs — abstract interpretation of MIR function bodies"""

__version__ = "0.1.0"
