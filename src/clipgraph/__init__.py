"""clipgraph — compile video timelines into one FFmpeg filter graph.

A timeline is a list of clips (video, image, color, audio, music, text,
subtitle, effect, watermark). compiler.compile_project() turns it into a
single -filter_complex graph plus the input list; runner.render() runs
ffmpeg on it. Timelines can also be declared in YAML manifests.
"""
