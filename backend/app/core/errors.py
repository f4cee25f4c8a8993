# backend/app/core/errors.py

class ResumeReviewError(Exception):
    """Base error. `message` is safe to show to the user."""
    kind = "error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", detail: str = ""):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class UploadFailure(ResumeReviewError):
    kind = "upload"
    default_message = "Failed to upload file. Please try again."


class ConversionFailure(ResumeReviewError):
    kind = "conversion"
    default_message = "Failed to convert PDF to image. Please try again."


class PersistFailure(ResumeReviewError):
    kind = "persist"
    default_message = "Failed to save resume data. Please try again."


class InferenceFailure(ResumeReviewError):
    kind = "inference"
    default_message = "Failed to analyze resume. Please try again."


class ParseFailure(ResumeReviewError):
    kind = "parse"
    default_message = "The analysis could not be read. Please try again."


class NotFound(ResumeReviewError):
    kind = "not_found"
    default_message = "Resume not found"


class FeedbackTimeout(ResumeReviewError):
    kind = "timeout"
    default_message = "No feedback available"


class JobInFlightError(ResumeReviewError):
    kind = "in_flight"
    default_message = "A resume is already being analyzed. Please wait for it to finish."
