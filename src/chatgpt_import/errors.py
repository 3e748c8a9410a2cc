"""chatgpt-import error hierarchy.

All project exceptions inherit from ChatImportError so the CLI and the HTTP
API can catch them at a single boundary.

    ChatImportError
    ├── ArchiveInvalid                  # archive cannot be used at all
    ├── ConversationProcessingFailed    # one conversation failed, run continues
    │   └── MalformedConversation
    ├── StoreError                      # raised by document stores
    │   ├── DocumentNotFound
    │   ├── DocumentExists
    │   └── NotAFolder
    └── StateError                      # persisted state cannot be decoded
"""


class ChatImportError(Exception):
    """Base class for all chatgpt-import errors."""


class ArchiveInvalid(ChatImportError):
    """The uploaded archive is missing conversations.json or is unreadable."""


class ConversationProcessingFailed(ChatImportError):
    """A single conversation could not be created or merged."""


class MalformedConversation(ConversationProcessingFailed):
    """A raw conversation object lacks the fields needed to sync it."""


class StoreError(ChatImportError):
    """Base class for document store failures."""


class DocumentNotFound(StoreError):
    """No document exists at the requested path."""


class DocumentExists(StoreError):
    """A document already exists where a new one was to be created."""


class NotAFolder(StoreError):
    """A path that should be a folder is something else."""


class StateError(ChatImportError):
    """The persisted state file exists but is not valid JSON state."""
