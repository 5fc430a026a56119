"""Higher-level jobs built on Command."""

from ffcommand.recipes.merge import merge_to_file
from ffcommand.recipes.screenshots import ScreenshotOptions, take_screenshots

__all__ = ["ScreenshotOptions", "merge_to_file", "take_screenshots"]
