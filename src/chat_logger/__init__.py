"""Chat Logger: encrypted chat history with bounded per-conversation retention."""
