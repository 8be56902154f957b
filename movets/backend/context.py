"""Translation configuration and per-module translation context."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..ir import FunctionSignature, ModuleIdent
from .util import format_address


@dataclass(frozen=True)
class Config:
    """Options shared by every module of a translation run.

    - test: mark functions carrying the `test` attribute with a comment
    """

    test: bool = False


@dataclass
class Context:
    """State of one module translation.

    A new Context is built for every module and never shared, so modules can
    be translated independently. Within a module the emitters use it
    sequentially.

    - current_function: signature of the function being emitted, used to
      resolve type parameters to positional type-tag arguments
    - struct_type_params: type parameters in scope while emitting a struct
    - package_imports / same_package_imports: aliases the generated file must
      import, filled in as foreign names are referenced
    """

    module: ModuleIdent
    config: Config = field(default_factory=Config)
    current_function: FunctionSignature | None = None
    struct_type_params: list[str] | None = None
    package_imports: set[str] = field(default_factory=set)
    same_package_imports: set[str] = field(default_factory=set)

    def qualify(self, mident: ModuleIdent, name: str) -> str:
        """Name of a module member as seen from the current module.

        Records the import that makes the qualified name resolvable.
        """
        if (
            format_address(mident.address) == format_address(self.module.address)
            and mident.name == self.module.name
        ):
            return name
        if mident.package == self.module.package:
            self.same_package_imports.add(mident.name)
            return mident.name + "." + name
        package = mident.package if mident.package else _address_alias(mident)
        self.package_imports.add(package)
        return package + "." + mident.name + "." + name


def _address_alias(mident: ModuleIdent) -> str:
    if mident.address_name:
        return mident.address_name
    return "Addr_" + format_address(mident.address)[2:]
