__version__ = "1.0.0"
__description__ = (
    "Desktop front-end for batch transcoding video files to Avid DNxHR\n"
    "(MOV or MXF, PCM audio) with ffmpeg, showing per-file progress."
)
