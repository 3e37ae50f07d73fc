from solidpod.client import OperationResult, PodResourceClient
from solidpod.context import PodContext


class BaseCommand:
    def __init__(self, context: PodContext = None):
        self.context = context
        self.result = None

    @property
    def client(self) -> PodResourceClient:
        return self.context.client

    def check(self, result: OperationResult, action: str) -> OperationResult:
        """Store `result` and raise a `RuntimeError` if it is a failure, so
        the command exits with a non-zero status."""
        self.result = result
        if not result:
            message = f'{action} failed: {result.error.value} error'
            if result.status_code is not None:
                message += f' ({result.status_code})'
            raise RuntimeError(message)
        return result
