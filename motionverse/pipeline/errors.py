# motionverse/pipeline/errors.py
"""
Pipeline error taxonomy.

- INPUT_MALFORMED      → fatal, raised before smoothing
- ACTION_UNSUPPORTED   → fatal, no configuration for the requested action
- CONFIG_INVALID       → fatal, a configuration file failed validation

Insufficient data is NOT an error: stages mark keyframes / metrics absent
and the score confidence carries the degradation.
"""

from typing import Optional


class PipelineError(Exception):
    code = "PIPELINE_ERROR"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def as_dict(self):
        return {"code": self.code, "message": str(self), "stage": self.stage}


class MalformedInputError(PipelineError):
    code = "INPUT_MALFORMED"


class UnsupportedActionError(PipelineError):
    code = "ACTION_UNSUPPORTED"

    def __init__(self, action: str):
        super().__init__(f"No analysis configuration for action: {action!r}", stage="config")
        self.action = action


class ConfigurationError(PipelineError):
    code = "CONFIG_INVALID"


class InvalidTransitionError(PipelineError):
    code = "SESSION_INVALID_TRANSITION"
