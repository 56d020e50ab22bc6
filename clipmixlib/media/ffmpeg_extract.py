#!/usr/bin/env python3

import shutil
import numpy
from clipmixlib import medialib
from clipmixlib.core import utils
from clipmixlib.core.errors import DecodeError
from clipmixlib.core.mixer import AudioPCM

#============================================

def decode_audio(media_file: str, sample_rate: int = None,
	channels: int = None) -> AudioPCM:
	"""
	Decode the audio of a media file to float PCM with ffmpeg.

	Passing sample_rate and channels makes ffmpeg resample and remix, so
	every clip of a project reaches the mixer in one format.

	Args:
		media_file: Audio or video file path.
		sample_rate: Output rate in Hz, or None for the source rate.
		channels: Output channel count, or None for the source layout.

	Returns:
		AudioPCM: Decoded samples.
	"""
	if shutil.which("ffmpeg") is None:
		raise DecodeError(media_file, "missing dependency: ffmpeg")
	if sample_rate is None or channels is None:
		(source_rate, source_channels) = medialib.getAudioFormat(media_file)
		if sample_rate is None:
			sample_rate = source_rate
		if channels is None:
			channels = source_channels
	cmd = [
		"ffmpeg", "-hide_banner", "-loglevel", "error",
		"-i", str(media_file),
		"-vn", "-sn",
		"-f", "f32le", "-acodec", "pcm_f32le",
		"-ar", str(int(sample_rate)),
		"-ac", str(int(channels)),
		"pipe:1",
	]
	proc = utils.run_process(cmd, capture_output=True)
	if proc.returncode != 0:
		stderr_text = proc.stderr.decode('utf-8', errors='replace').strip()
		raise DecodeError(media_file, stderr_text)
	samples = numpy.frombuffer(proc.stdout, dtype='<f4')
	usable = samples.size - (samples.size % int(channels))
	samples = samples[:usable].reshape(-1, int(channels)).T
	return AudioPCM(samples, sample_rate)

#============================================

def make_decoder(sample_rate: int = None, channels: int = None):
	def decoder(media_file):
		return decode_audio(media_file, sample_rate=sample_rate, channels=channels)
	return decoder
