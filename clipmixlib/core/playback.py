#!/usr/bin/env python3

from clipmixlib.core import timeline as timeline_module

#============================================

TRANSPORT = 'transport'
MEDIA_ELEMENT = 'media_element'
CLOCK_WRITERS = (TRANSPORT, MEDIA_ELEMENT)

#============================================

class PlaybackContext():
	"""
	Master timeline clock shared by every view of the timeline.

	Only the transport control and the playing media element may move
	the clock; everyone else reads it.
	"""
	def __init__(self, duration_seconds: float = 0.0):
		self.duration = 0.0
		self.current_time = 0.0
		self.set_duration(duration_seconds)

	#============================
	def set_duration(self, duration_seconds: float) -> None:
		if duration_seconds is None or duration_seconds < 0:
			raise RuntimeError("playback duration must be non-negative")
		self.duration = float(duration_seconds)
		if self.current_time > self.duration:
			self.current_time = self.duration

	#============================
	def set_current_time(self, seconds: float, writer: str) -> float:
		if writer not in CLOCK_WRITERS:
			raise RuntimeError(f"{writer} may not write the playback clock")
		self.current_time = min(max(0.0, float(seconds)), self.duration)
		return self.current_time

	#============================
	def seek(self, seconds: float) -> float:
		return self.set_current_time(seconds, TRANSPORT)

	#============================
	def progress(self) -> float:
		if self.duration <= 0:
			return 0.0
		return self.current_time / self.duration

#============================================

def active_clips_at(timeline, seconds: float) -> list:
	"""
	Video clips visible at a timeline instant.

	Args:
		timeline: Timeline to inspect.
		seconds: Timeline time in seconds.

	Returns:
		list: Dicts with clip_id, local_time and z_index, sorted bottom
		to top. Earlier-created tracks get the higher z_index.
	"""
	tracks = timeline.tracks_of_kind(timeline_module.VIDEO)
	track_count = len(tracks)
	active = []
	for track in tracks:
		z_index = track_count - track.group_index
		for clip in track.ready_clips():
			if clip.start_seconds <= seconds <= clip.end_seconds:
				active.append({
					'clip_id': clip.id,
					'local_time': seconds - clip.start_seconds,
					'z_index': z_index,
				})
	active.sort(key=lambda item: item['z_index'])
	return active
