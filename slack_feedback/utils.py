EXTENSIONS: tuple[str, ...] = ("slack_feedback.exts.feedback.feedback",)
