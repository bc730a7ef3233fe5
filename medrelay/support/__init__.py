from medrelay.support.relay import SupportRelay
from medrelay.support.roster import SupportRoster
from medrelay.support.transcript import ChatTranscript

__all__ = ["SupportRelay", "SupportRoster", "ChatTranscript"]
