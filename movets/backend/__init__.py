"""Code emitters: IR → TypeScript."""

from .context import Config, Context
from .typescript import TsBackend, translate_module, translate_modules

__all__ = ["Config", "Context", "TsBackend", "translate_module", "translate_modules"]
