"""Movement classification and dual-entry dispatch engine."""

__version__ = "0.1.0"


# Import lazily so that importing the domain layer does not pull in click
def __getattr__(name):
    if name == "main":
        from movekit.cli.main import main
        return main
    if name == "MovementService":
        from movekit.domain.movement import MovementService
        return MovementService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
