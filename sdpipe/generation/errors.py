class GenerationError(Exception):
    """Base class for every failure raised by ImageGenerator.generate."""


class EngineFailure(GenerationError):
    """The inference engine raised; the original exception is kept in `cause`."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Inference engine failed: {type(cause).__name__}: {cause}")
        self.cause = cause


class EmptyResult(GenerationError):
    """The engine returned without error but produced no usable image."""

    def __init__(self, seed: int, slot_count: int):
        super().__init__(
            f"Generation produced no image (seed={seed}, {slot_count} empty slot(s))"
        )
        self.seed = seed
        self.slot_count = slot_count
