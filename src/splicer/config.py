"""
Default settings for injection.

Keys use the option names found in request files and config files.
"""

INJECTION_CONFIG = {
    "based": "1-based",
    "revert": False,
    "strict": False,
    "writeToFile": True,
    "logCode": False,
    "generateSourceMap": False,
    "sourceMapPath": None,
    "arrayBeforeAfter": "array-means-multiline",
    "maxWorkers": 1,
}

EXPECT_ERROR_COMMENT = "// @ts-expect-error TODO: fix ts"

# Extension given to position maps written next to edited files
SOURCE_MAP_SUFFIX = ".map"

LOGGING_CONFIG = {
    "console_format": (
        "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan> - <level>{message}</level>"
    ),
    "file_name": "splicer.log",
    "file_level": "INFO",
    "rotation": "10 MB",
    "retention": "1 day",
}
