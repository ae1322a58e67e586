"""Parameter binder: resolves placeholder names to bind values or literals."""

from typing import Any, List, Mapping, Optional

from .statement import CompiledStatement

# DB-API NULL; bound for placeholders the caller did not supply
MISSING = None


class ParameterBinder:
    """Binds argument mappings to a compiled statement."""

    def __init__(self, statement: CompiledStatement):
        """Initialize binder.

        Args:
            statement: Compiled statement whose placeholders are bound
        """
        self.statement = statement
        self.helper = statement.helper

    def bind_positional(self, params: Optional[Mapping[str, Any]]) -> List[Any]:
        """Resolve one bind value per placeholder occurrence, in order.

        Names absent from ``params`` bind ``MISSING``; unused keys are ignored.
        """
        return [self._resolve(name, params) for name in self.statement.placeholder_names]

    def bind_literal(self, params: Optional[Mapping[str, Any]]) -> str:
        """Render the template with every placeholder replaced by a literal.

        Raises:
            BindError: if a value has no safe literal form in this dialect
        """
        rendered = []
        for name in self.statement.placeholder_names:
            value = self._resolve(name, params)
            rendered.append(self.helper.render_literal(value))
        return self.statement.substitute(rendered)

    def missing_names(self, params: Optional[Mapping[str, Any]]) -> List[str]:
        """Placeholder names (deduplicated, in order) absent from ``params``."""
        params = params or {}
        missing: List[str] = []
        for name in self.statement.placeholder_names:
            if name not in params and name not in missing:
                missing.append(name)
        return missing

    def _resolve(self, name: str, params: Optional[Mapping[str, Any]]) -> Any:
        if params is None or name not in params:
            return MISSING
        return params[name]
