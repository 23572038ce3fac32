"""Project version constants.

These constants are used in logs, run manifests and the header of the rendered
demo script so that a generated artifact can be traced back to the code that
produced it.
"""

ENGINE_NAME: str = "aidb-fraud-demo"
ENGINE_VERSION: str = "0.1.0"

SCHEMA_VERSION: int = 1
