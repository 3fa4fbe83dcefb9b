from call_analytics.models.call_record import CallRecord, CallSuccessful
from call_analytics.models.feedback import Feedback

__all__ = ["CallRecord", "CallSuccessful", "Feedback"]
