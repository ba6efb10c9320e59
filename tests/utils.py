import asyncio


class RecordingErrorLogger:
    """Stands in for ``log_action_execution_error`` and records every call."""

    def __init__(self):
        self.calls = []

    def __call__(self, message, source=None, trigger_property_name=None):
        self.calls.append((message, source, trigger_property_name))

    @property
    def messages(self):
        return [message for message, _, _ in self.calls]


class RecordingExecutor:
    """Callback executor that records invocations and can be told to fail."""

    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    async def execute(self, descriptor, callback_data, context):
        self.calls.append((descriptor, callback_data, context))
        if self.fail_with is not None:
            raise self.fail_with


async def spin(iterations: int = 10) -> None:
    """Let pending callbacks and tasks on the running loop make progress."""
    for _ in range(iterations):
        await asyncio.sleep(0)
