"""medwallet - patient records, emergency QR codes and PDF exports over hosted storage."""

__version__ = "0.1.0"


# Lazy imports to avoid loading FastAPI when only using the record library
def __getattr__(name: str):
    if name == "create_app":
        from .api.main import create_app
        return create_app
    elif name == "RecordStore":
        from .records import RecordStore
        return RecordStore
    elif name == "RecordSync":
        from .records import RecordSync
        return RecordSync
    elif name == "load_patients":
        from .records import load_patients
        return load_patients
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["__version__", "create_app", "RecordStore", "RecordSync", "load_patients"]
