try:
    import os
    from dotenv import load_dotenv, find_dotenv

    env_file = os.environ.get("ENV_FILE", ".env")
    path = find_dotenv(filename=env_file, raise_error_if_not_found=True, usecwd=True)
    print(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)

except IOError:
    # No file to set environment variables
    pass

from samplecontroller import app  # noqa: E402
from samplecontroller.handlers import foo, probes  # noqa: E402

__all__ = [
    "app",
    "foo",
    "probes",
]

__version__ = "0.1.0"
