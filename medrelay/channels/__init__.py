from medrelay.channels.notifier import ConsoleNotifier, Notifier, deliver
from medrelay.channels.whatsapp import WhatsAppNotifier, extract_events

__all__ = ["Notifier", "ConsoleNotifier", "WhatsAppNotifier", "deliver", "extract_events"]
