"""Sub-dialogs run by the conversation loop."""
