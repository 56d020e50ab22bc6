#python wrapper for ffprobe

import json
import shutil
from clipmixlib.core import utils
from clipmixlib.core.errors import DecodeError

#===============================
def getMediaInfo(mediafile):
	if shutil.which("ffprobe") is None:
		raise DecodeError(mediafile, "missing dependency: ffprobe")
	cmd = [
		"ffprobe", "-v", "error",
		"-show_entries", "format=duration:stream=codec_type,width,height,sample_rate,channels",
		"-of", "json",
		str(mediafile),
	]
	proc = utils.run_process(cmd, capture_output=True)
	if proc.returncode != 0:
		stderr_text = proc.stderr.decode('utf-8', errors='replace').strip()
		raise DecodeError(mediafile, stderr_text)
	try:
		data = json.loads(proc.stdout)
	except ValueError as exc:
		raise DecodeError(mediafile, "unreadable ffprobe output") from exc
	return data

#===============================
def getDuration(mediafile):
	data = getMediaInfo(mediafile)
	duration = data.get('format', {}).get('duration')
	if duration is None:
		raise DecodeError(mediafile, "no duration reported")
	duration = float(duration)
	if duration <= 0:
		raise DecodeError(mediafile, "duration is not positive")
	return duration

#===============================
def _video_dimensions(data):
	videotrack = None
	for stream in data.get('streams', []):
		if stream.get('codec_type') == 'video':
			videotrack = stream
			break
	if videotrack is None:
		return None
	width = int(videotrack.get('width', 0))
	height = int(videotrack.get('height', 0))
	if width <= 0 or height <= 0:
		return None
	return (width, height)

#===============================
def getAudioFormat(mediafile):
	data = getMediaInfo(mediafile)
	for stream in data.get('streams', []):
		if stream.get('codec_type') == 'audio':
			sample_rate = int(stream.get('sample_rate', 0))
			channels = int(stream.get('channels', 0))
			if sample_rate <= 0 or channels <= 0:
				raise DecodeError(mediafile, "invalid audio stream format")
			return (sample_rate, channels)
	raise DecodeError(mediafile, "no audio stream found")

#===============================
def probeVideo(mediafile):
	"""
	Duration and frame size of a video file.
	"""
	data = getMediaInfo(mediafile)
	duration = data.get('format', {}).get('duration')
	if duration is None:
		raise DecodeError(mediafile, "no duration reported")
	dimensions = _video_dimensions(data)
	if dimensions is None:
		raise DecodeError(mediafile, "no video stream found")
	return {
		'duration_seconds': float(duration),
		'width': dimensions[0],
		'height': dimensions[1],
	}
