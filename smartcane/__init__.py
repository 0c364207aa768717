"""SmartCane companion: session handling, settings and obstacle announcements."""
