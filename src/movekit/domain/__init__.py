"""Domain layer for movekit application."""

# Services import the database layer, which imports domain.entities;
# resolve them on first access so either package can be imported first.
_SERVICES = {
    "MovementService": "movekit.domain.movement",
    "TaxonomyService": "movekit.domain.taxonomy",
    "DirectoryService": "movekit.domain.directory",
}


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = list(_SERVICES)
