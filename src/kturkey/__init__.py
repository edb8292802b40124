"""kturkey - multi-currency ledger and resident statements for residential sites."""

# Import main lazily to avoid circular dependencies
def __getattr__(name):
    if name == "main":
        from kturkey.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
