"""Project version constants.

These constants are logged at the start of every run so that a loaded table
can be traced back to the engine version that produced it.
"""

ENGINE_NAME: str = "user-upload"
ENGINE_VERSION: str = "0.1.0"
