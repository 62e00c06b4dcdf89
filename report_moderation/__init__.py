"""Report intake, triage and moderation decisions for the social platform."""
