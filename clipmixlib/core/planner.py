#!/usr/bin/env python3

from clipmixlib.core import timeline as timeline_module
from clipmixlib.core.errors import EmptyTimeline

#============================================

class SegmentPlan():
	"""
	Result of one planning pass.

	segments holds the temporal sequence of video and gap entries.
	precedence holds the stacking order of the same clips, where the
	last entry is drawn on top. A compositor that stacks clips reads
	precedence, one that concatenates reads segments.
	"""
	def __init__(self, segments: list, precedence: list):
		self.segments = segments
		self.precedence = precedence

	#============================
	def duration(self) -> float:
		return sum(segment['duration'] for segment in self.segments)

	#============================
	def video_segments(self) -> list:
		return [segment for segment in self.segments if segment['type'] == 'video']

	#============================
	def to_dict(self) -> dict:
		return {
			'segments': [dict(segment) for segment in self.segments],
			'precedence': [dict(entry) for entry in self.precedence],
			'duration': self.duration(),
		}

	#============================
	def __eq__(self, other) -> bool:
		if not isinstance(other, SegmentPlan):
			return NotImplemented
		return self.to_dict() == other.to_dict()

	#============================
	def __repr__(self) -> str:
		return f"SegmentPlan(segments={len(self.segments)}, duration={self.duration():.3f})"

#============================================

class SegmentPlanner():
	def __init__(self, timeline):
		self.timeline = timeline

	#============================
	def plan(self) -> SegmentPlan:
		snapshot = self.timeline.snapshot()
		flattened = self._flatten_clips(snapshot)
		if len(flattened) == 0:
			raise EmptyTimeline()
		precedence = self._resolve_precedence(flattened)
		temporal = sorted(precedence, key=lambda entry: entry['start'])
		segments = self._build_segments(temporal)
		return SegmentPlan(segments, precedence)

	#============================
	def _flatten_clips(self, snapshot) -> list:
		flattened = []
		for track in snapshot.tracks_of_kind(timeline_module.VIDEO):
			for clip in track.ready_clips():
				flattened.append({
					'clip_id': clip.id,
					'media_ref': clip.media_ref,
					'group_index': track.group_index,
					'start': clip.start_seconds,
					'duration': clip.duration_seconds,
					'width': clip.width,
					'height': clip.height,
				})
		return flattened

	#============================
	def _resolve_precedence(self, flattened: list) -> list:
		# sort then reverse: earlier tracks land last, which a
		# last-on-top compositor draws above later tracks
		ordered = sorted(flattened, key=lambda entry: entry['group_index'])
		ordered.reverse()
		for z_order, entry in enumerate(ordered):
			entry['z_order'] = z_order
		return ordered

	#============================
	def _build_segments(self, temporal: list) -> list:
		segments = []
		cursor = 0.0
		for entry in temporal:
			start = entry['start']
			if start > cursor:
				segments.append({
					'type': 'gap',
					'start': cursor,
					'duration': start - cursor,
				})
			segments.append({
				'type': 'video',
				'clip_id': entry['clip_id'],
				'start': start,
				'duration': entry['duration'],
			})
			cursor = start + entry['duration']
		return segments
