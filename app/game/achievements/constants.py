ACHIEVEMENT_REFERENCE_PREFIX = "achievement:"
