from dataclasses import dataclass
from typing import Iterable, List, Tuple
from template_service.core.errors import InvalidTemplateName

DEFAULT_TEMPLATES = ("react", "angular", "express", "nestjs")

@dataclass(frozen=True)
class TemplateRegistry:
    """Read-only allow-list of template names, fixed at startup."""
    names: Tuple[str, ...]

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def available(self) -> List[str]:
        return list(self.names)

    def validate(self, requested: Iterable[str]) -> List[str]:
        """Check every name before any work starts; first unknown name wins."""
        names = list(requested)
        for name in names:
            if name not in self.names:
                raise InvalidTemplateName(name, self.available())
        return names

    @staticmethod
    def default() -> "TemplateRegistry":
        return TemplateRegistry(names=DEFAULT_TEMPLATES)

    @staticmethod
    def from_names(names: Iterable[str]) -> "TemplateRegistry":
        # dict.fromkeys keeps the configured order while dropping repeats
        return TemplateRegistry(names=tuple(dict.fromkeys(names)))
