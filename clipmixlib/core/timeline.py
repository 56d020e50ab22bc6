#!/usr/bin/env python3

import copy
import uuid
from clipmixlib.core import utils

#============================================

AUDIO = 'audio'
VIDEO = 'video'
CLIP_KINDS = (AUDIO, VIDEO)

#============================================

def _new_id(prefix: str) -> str:
	return f"{prefix}-{uuid.uuid4().hex[:12]}"

#============================================

class Clip():
	def __init__(self, clip_id: str, kind: str, media_ref,
		offset_pixels: int = 0, duration_seconds: float = None,
		width: int = None, height: int = None):
		if kind not in CLIP_KINDS:
			raise RuntimeError(f"clip kind must be audio or video, got {kind}")
		self.id = clip_id
		self.kind = kind
		self.media_ref = media_ref
		self.offset_pixels = int(offset_pixels)
		self.duration_seconds = duration_seconds
		self.width = width
		self.height = height

	#============================
	@property
	def is_ready(self) -> bool:
		return self.duration_seconds is not None

	#============================
	@property
	def start_seconds(self) -> float:
		return utils.seconds_from_pixels(self.offset_pixels)

	#============================
	@property
	def end_seconds(self) -> float:
		if self.duration_seconds is None:
			return self.start_seconds
		return self.start_seconds + self.duration_seconds

	#============================
	@property
	def width_pixels(self) -> int:
		if self.duration_seconds is None:
			return 0
		return utils.width_pixels_from_seconds(self.duration_seconds)

	#============================
	def __repr__(self) -> str:
		return (f"Clip({self.id!r}, {self.kind}, offset={self.offset_pixels}px, "
			f"duration={self.duration_seconds})")

#============================================

class Track():
	def __init__(self, track_id: str, kind: str, group_index: int):
		if kind not in CLIP_KINDS:
			raise RuntimeError(f"track kind must be audio or video, got {kind}")
		self.id = track_id
		self.kind = kind
		self.group_index = group_index
		self.clips = []

	#============================
	def ready_clips(self) -> list:
		return [clip for clip in self.clips if clip.is_ready]

	#============================
	def __repr__(self) -> str:
		return f"Track({self.id!r}, {self.kind}, group={self.group_index}, clips={len(self.clips)})"

#============================================

class Timeline():
	"""
	Tracks and clips placed on a pixel-scaled timeline.

	Clips whose duration is still unknown stay on their track but are
	skipped by timeline_end(), the mixer and the planner until
	set_clip_duration() is called for them.
	"""
	def __init__(self, container_seconds: float = None):
		self.tracks = []
		self.container_width_pixels = None
		if container_seconds is not None:
			self.set_container_seconds(container_seconds)
		self._group_counters = {AUDIO: 0, VIDEO: 0}

	#============================
	def set_container_seconds(self, seconds: float) -> None:
		if seconds < 0:
			raise RuntimeError("timeline container duration must be non-negative")
		self.container_width_pixels = utils.width_pixels_from_seconds(seconds)

	#============================
	def add_track(self, kind: str, track_id: str = None) -> str:
		if kind not in CLIP_KINDS:
			raise RuntimeError(f"track kind must be audio or video, got {kind}")
		if track_id is None:
			track_id = _new_id(f"{kind}-track")
		if self._find_track(track_id) is not None:
			raise RuntimeError(f"track id already exists: {track_id}")
		group_index = self._group_counters[kind]
		self._group_counters[kind] += 1
		self.tracks.append(Track(track_id, kind, group_index))
		return track_id

	#============================
	def add_clip(self, track_id: str, media_ref, duration_seconds: float = None,
		offset_pixels: int = 0, width: int = None, height: int = None,
		clip_id: str = None) -> str:
		track = self.get_track(track_id)
		if clip_id is None:
			clip_id = _new_id('clip')
		if self._find_clip(clip_id) is not None:
			raise RuntimeError(f"clip id already exists: {clip_id}")
		if offset_pixels < 0:
			raise RuntimeError("clip offset must be non-negative")
		clip = Clip(clip_id, track.kind, media_ref, offset_pixels=offset_pixels,
			width=width, height=height)
		track.clips.append(clip)
		if duration_seconds is not None:
			self.set_clip_duration(clip_id, duration_seconds, width, height)
		return clip_id

	#============================
	def set_clip_duration(self, clip_id: str, duration_seconds: float,
		width: int = None, height: int = None) -> None:
		if duration_seconds is None or duration_seconds <= 0:
			raise RuntimeError("clip duration must be positive")
		clip = self.get_clip(clip_id)
		clip.duration_seconds = float(duration_seconds)
		if width is not None:
			clip.width = int(width)
		if height is not None:
			clip.height = int(height)

	#============================
	def remove_clip(self, clip_id: str) -> None:
		for track in self.tracks:
			for clip in track.clips:
				if clip.id == clip_id:
					track.clips.remove(clip)
					return
		raise RuntimeError(f"clip not found: {clip_id}")

	#============================
	def clamp_offset(self, clip: Clip, offset_pixels: int) -> int:
		offset_pixels = int(offset_pixels)
		if self.container_width_pixels is not None:
			upper = self.container_width_pixels - clip.width_pixels
			offset_pixels = min(offset_pixels, upper)
		return max(0, offset_pixels)

	#============================
	def move_clip(self, clip_id: str, new_offset_pixels: int) -> int:
		clip = self.get_clip(clip_id)
		clip.offset_pixels = self.clamp_offset(clip, new_offset_pixels)
		return clip.offset_pixels

	#============================
	def begin_drag(self, clip_id: str):
		return DragGesture(self, clip_id)

	#============================
	def timeline_end(self) -> float:
		ends = [clip.end_seconds for clip in self.iter_clips() if clip.is_ready]
		if len(ends) == 0:
			return 0.0
		return max(ends)

	#============================
	def tracks_of_kind(self, kind: str) -> list:
		return [track for track in self.tracks if track.kind == kind]

	#============================
	def iter_clips(self, kind: str = None):
		for track in self.tracks:
			if kind is not None and track.kind != kind:
				continue
			for clip in track.clips:
				yield clip

	#============================
	def get_track(self, track_id: str) -> Track:
		track = self._find_track(track_id)
		if track is None:
			raise RuntimeError(f"track not found: {track_id}")
		return track

	#============================
	def get_clip(self, clip_id: str) -> Clip:
		clip = self._find_clip(clip_id)
		if clip is None:
			raise RuntimeError(f"clip not found: {clip_id}")
		return clip

	#============================
	def snapshot(self):
		return copy.deepcopy(self)

	#============================
	def _find_track(self, track_id: str):
		for track in self.tracks:
			if track.id == track_id:
				return track
		return None

	#============================
	def _find_clip(self, clip_id: str):
		for clip in self.iter_clips():
			if clip.id == clip_id:
				return clip
		return None

#============================================

class DragGesture():
	"""
	Pending clip position during a drag.

	The timeline is only touched once, by commit().
	"""
	def __init__(self, timeline: Timeline, clip_id: str):
		self.timeline = timeline
		self.clip_id = clip_id
		clip = timeline.get_clip(clip_id)
		self.origin_pixels = clip.offset_pixels
		self.pending_pixels = clip.offset_pixels
		self.active = True

	#============================
	def move_to(self, offset_pixels: int) -> int:
		if not self.active:
			raise RuntimeError("drag gesture already finished")
		clip = self.timeline.get_clip(self.clip_id)
		self.pending_pixels = self.timeline.clamp_offset(clip, offset_pixels)
		return self.pending_pixels

	#============================
	def move_by(self, delta_pixels: int) -> int:
		return self.move_to(self.origin_pixels + int(delta_pixels))

	#============================
	def commit(self) -> int:
		if not self.active:
			raise RuntimeError("drag gesture already finished")
		self.active = False
		return self.timeline.move_clip(self.clip_id, self.pending_pixels)

	#============================
	def cancel(self) -> None:
		self.active = False
		self.pending_pixels = self.origin_pixels

#============================================

def ruler_ticks(duration_seconds: float) -> list:
	"""
	Ruler marks for a timeline of the given length.

	Args:
		duration_seconds: Timeline length in seconds.

	Returns:
		list: One dict per whole second. Every fifth tick is a major
		tick and carries an HH:MM:SS label, the others have label None.
	"""
	ticks = []
	if duration_seconds is None or duration_seconds < 0:
		return ticks
	count = int(duration_seconds)
	for second in range(count + 1):
		major = (second % 5 == 0)
		ticks.append({
			'pixels': second * utils.PIXELS_PER_SECOND,
			'seconds': second,
			'major': major,
			'label': format_clock(second) if major else None,
		})
	return ticks

#============================================

def format_clock(seconds: float) -> str:
	total = int(seconds)
	hours = total // 3600
	minutes = (total % 3600) // 60
	secs = total % 60
	return f"{hours:02d}:{minutes:02d}:{secs:02d}"
