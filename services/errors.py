"""
Error taxonomy for ingestion, analysis and session handling.

Every error carries a short message that is safe to show to the user and the
HTTP status the routers answer with. Internal detail is logged where the
error is raised, never put in the message.
"""


class DataChatError(Exception):
    status_code = 400
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ParseError(DataChatError):
    default_message = "Failed to parse Excel file. Please check that it is a valid .xlsx or .xls file."


class EmptyDataError(DataChatError):
    status_code = 422
    default_message = "Excel file appears to be empty or has no readable data."


class FetchError(DataChatError):
    status_code = 502
    default_message = (
        "Could not connect to Google Sheet. Please check permissions "
        "(must be 'Anyone with the link') or the URL."
    )

    def __init__(self, message: str = None, upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class IdentifierError(DataChatError):
    default_message = "Invalid Google Sheet URL or ID."


class AnalysisError(DataChatError):
    status_code = 502
    default_message = "Sorry, I encountered an error analyzing your request. Please try again."


class SessionBusyError(DataChatError):
    status_code = 409
    default_message = "Another request is still being processed for this session. Please wait."


class StaleResultError(DataChatError):
    status_code = 409
    default_message = "The session was reset while the request was running. The result was discarded."
