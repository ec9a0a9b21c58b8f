"""Group-chat bot building blocks: reminders, group management, MIDI, lookups and image stores."""

__version__ = "0.1.0"