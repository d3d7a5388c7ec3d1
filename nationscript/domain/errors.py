"""Exception taxonomy for nationscript.

Decode errors abort a whole decode; API errors map HTTP status codes of a
completed call; configuration errors are raised before any request is sent.
"""

from typing import Optional


class NationScriptError(Exception):
    """Base class for every error raised by this package."""


# === Decode Framework ===

class ProductWithheldError(NationScriptError):
    """Raised when a product is requested from a node that is not sealed yet."""

    def __init__(self, root_tag: str):
        self.root_tag = root_tag
        super().__init__(f"Product of <{root_tag}> requested before its closing tag was seen")


class DecisionNotImplementedError(NationScriptError, NotImplementedError):
    """Raised by a decode node whose tag decision was never supplied."""

    def __init__(self, node_type: str, tag: str):
        self.node_type = node_type
        self.tag = tag
        super().__init__(f"{node_type} has no decision for child tag <{tag}>")


class UnknownSchemaError(NationScriptError):
    """Raised when no decode schema is registered for a document's root tag."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"No decode schema registered for root tag <{tag}>")


class ParseError(NationScriptError):
    """Raised when the markup source reports malformed input.

    The partially built tree is discarded. The parser's own exception is
    kept on ``cause``.
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Malformed response body: {cause}")


# === Configuration / Request Building ===

class ConfigurationError(NationScriptError):
    """Raised when the client is not configured well enough to send a request."""


class MissingUserAgentError(ConfigurationError):
    """Raised when a request is attempted without a user agent."""

    def __init__(self):
        super().__init__(
            "A user agent is required by the API rules. Set NATIONSCRIPT_USER_AGENT "
            "or api.user_agent, or pass --agent."
        )


class MissingArgumentError(NationScriptError):
    """Raised when a request lacks one of its mandatory arguments."""

    def __init__(self, missing: list):
        self.missing = list(missing)
        super().__init__(f"Missing mandatory argument(s): {', '.join(self.missing)}")


# === HTTP / API ===

class APIError(NationScriptError):
    """Raised when the API answers a call with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ForbiddenError(APIError):
    """403: the call was refused, usually a blocked user agent or a bad shard."""

    def __init__(self, message: str = "Request forbidden by the API"):
        super().__init__(message, status_code=403)


class EntityNotFoundError(APIError):
    """404: the requested nation, region or card does not exist."""

    def __init__(self, message: str = "Requested entity does not exist"):
        super().__init__(message, status_code=404)


class LoginError(APIError):
    """409: the credentials for a private shard or command were rejected."""

    def __init__(self, message: str = "Login failed for private request"):
        super().__init__(message, status_code=409)


class RatelimitError(APIError):
    """429: the server-side rate limit was exceeded."""

    def __init__(self, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        detail = f", retry after {retry_after}s" if retry_after is not None else ""
        super().__init__(f"API rate limit exceeded{detail}", status_code=429)


class DumpNotModifiedError(APIError):
    """304: the remote dump is not newer than the local copy."""

    def __init__(self):
        super().__init__("Remote dump has not been modified since the local copy", status_code=304)


class ServerError(APIError):
    """5xx: the server failed to answer the call."""


class TransportError(APIError):
    """The call never completed: connection, timeout or protocol failure."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


# === Dumps ===

class DumpNotFoundError(NationScriptError):
    """Raised when a local dump is required but no local copy exists."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No local dump found at {path}")
