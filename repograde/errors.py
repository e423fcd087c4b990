from typing import Optional, Dict, Any

class RepograderError(Exception):
    """
    Base error for anything that ends an evaluation request.
    Carries the HTTP status and the JSON envelope it is reported with.
    """
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

class InvalidInput(RepograderError):
    status_code = 400

class RepositoryNotFound(RepograderError):
    pass

class UpstreamError(RepograderError):
    pass

class CredentialMissing(RepograderError):
    pass

class ModelUnavailable(RepograderError):
    pass

class MalformedModelOutput(RepograderError):
    pass

class InternalError(RepograderError):
    pass
