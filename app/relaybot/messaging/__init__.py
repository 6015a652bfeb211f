"""Discord messaging pipeline -- client, dispatcher, and text formatting."""
