from .codec import IcalNode, decode, encode
from .events import CalendarError, calendar_view

__all__ = ["CalendarError", "IcalNode", "calendar_view", "decode", "encode"]
