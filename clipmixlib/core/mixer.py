#!/usr/bin/env python3

import numpy
from clipmixlib.core import utils
from clipmixlib.core import timeline as timeline_module
from clipmixlib.core.errors import FormatMismatch

#============================================

def _as_channel_array(channels) -> numpy.ndarray:
	array = numpy.asarray(channels, dtype=numpy.float32)
	if array.ndim == 1:
		array = array.reshape(1, -1)
	if array.ndim != 2:
		raise RuntimeError("pcm channels must be a sequence of sample arrays")
	return array

#============================================

class AudioPCM():
	"""
	Decoded audio for one clip.

	channels is a float32 array shaped (channel_count, sample_count).
	"""
	def __init__(self, channels, sample_rate: int):
		if sample_rate is None or int(sample_rate) <= 0:
			raise RuntimeError("pcm sample rate must be positive")
		self.channels = _as_channel_array(channels)
		self.sample_rate = int(sample_rate)

	#============================
	@property
	def channel_count(self) -> int:
		return self.channels.shape[0]

	#============================
	@property
	def sample_count(self) -> int:
		return self.channels.shape[1]

	#============================
	@property
	def duration_seconds(self) -> float:
		return self.sample_count / float(self.sample_rate)

#============================================

class MixedAudioBuffer(AudioPCM):
	"""Output of one mixing pass. A later pass replaces it, never edits it."""

#============================================

def mix_clips(placed_clips: list) -> MixedAudioBuffer:
	"""
	Delay-mix decoded clips into one buffer.

	Samples are summed without normalization, so overlapping loud clips
	can leave [-1, 1]; clipping happens only when the buffer is quantized
	to 16-bit by the WAV encoder.

	Args:
		placed_clips: List of (offset_pixels, AudioPCM) or
			(offset_pixels, AudioPCM, clip_id) tuples.

	Returns:
		MixedAudioBuffer: The summed buffer, or None when there is
		nothing to mix.
	"""
	if len(placed_clips) == 0:
		return None
	first_pcm = placed_clips[0][1]
	expected = (first_pcm.sample_rate, first_pcm.channel_count)
	placements = []
	for item in placed_clips:
		offset_pixels = item[0]
		pcm = item[1]
		clip_id = item[2] if len(item) > 2 else None
		found = (pcm.sample_rate, pcm.channel_count)
		if found != expected:
			raise FormatMismatch(expected, found, clip_id)
		delay = utils.delay_samples(offset_pixels, pcm.sample_rate)
		placements.append((delay, pcm))
	total_length = max(delay + pcm.sample_count for (delay, pcm) in placements)
	(sample_rate, channel_count) = expected
	output = numpy.zeros((channel_count, total_length), dtype=numpy.float32)
	for (delay, pcm) in placements:
		start = min(delay, total_length)
		end = min(delay + pcm.sample_count, total_length)
		count = end - start
		if count <= 0:
			continue
		output[:, start:end] += pcm.channels[:, :count]
	return MixedAudioBuffer(output, sample_rate)

#============================================

class AudioMixer():
	"""
	Decodes the audio clips of a timeline and delay-mixes them.

	The decoder is any callable taking a media reference and returning
	an AudioPCM; see clipmixlib.media.ffmpeg_extract.decode_audio.
	"""
	def __init__(self, decoder):
		self.decoder = decoder

	#============================
	def collect_clips(self, timeline) -> list:
		snapshot = timeline.snapshot()
		placed_clips = []
		for clip in snapshot.iter_clips(timeline_module.AUDIO):
			if not clip.is_ready:
				continue
			pcm = self.decoder(clip.media_ref)
			placed_clips.append((clip.offset_pixels, pcm, clip.id))
		return placed_clips

	#============================
	def mix_timeline(self, timeline) -> MixedAudioBuffer:
		placed_clips = self.collect_clips(timeline)
		return mix_clips(placed_clips)
