"""movets: translate Move IR modules into TypeScript."""

__version__ = "0.1.0"
