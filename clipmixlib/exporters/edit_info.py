#!/usr/bin/env python3

import json
import os
import yaml
from clipmixlib.core import timeline as timeline_module

#============================================

def build_edit_info(timeline) -> dict:
	"""
	Summarize the video tracks of a timeline for hand-off.

	Args:
		timeline: Timeline to describe.

	Returns:
		dict: Timeline duration plus, per video track, each clip's
		delay and duration in seconds, pixel width and source file.
	"""
	snapshot = timeline.snapshot()
	video_tracks = []
	ends = []
	for track in snapshot.tracks_of_kind(timeline_module.VIDEO):
		clips = []
		for clip in track.ready_clips():
			ends.append(clip.end_seconds)
			clips.append({
				'id': clip.id,
				'delay': clip.start_seconds,
				'duration': clip.duration_seconds,
				'width': clip.width_pixels,
				'file': str(clip.media_ref) if clip.media_ref is not None else None,
			})
		video_tracks.append({
			'id': track.id,
			'group_index': track.group_index,
			'clips': clips,
		})
	timeline_duration = max(ends) if len(ends) > 0 else 0.0
	return {
		'timeline_duration': timeline_duration,
		'video_tracks': video_tracks,
	}

#============================================

def build_merge_request(plan) -> dict:
	"""
	Payload for a compositor that stacks clips instead of concatenating.

	Lists follow the plan's precedence order, so the last video is the
	topmost layer.
	"""
	return {
		'videos': [str(entry['media_ref']) for entry in plan.precedence],
		'clip_ids': [entry['clip_id'] for entry in plan.precedence],
		'start_times': [entry['start'] for entry in plan.precedence],
		'track_indices': [entry['group_index'] for entry in plan.precedence],
	}

#============================================

class EditInfoExporter():
	def __init__(self, project, output_file: str):
		self.project = project
		self.output_file = output_file

	#============================
	def build(self) -> dict:
		info = build_edit_info(self.project.timeline)
		video_clips = list(self.project.timeline.iter_clips(timeline_module.VIDEO))
		if any(clip.is_ready for clip in video_clips):
			info['merge_request'] = build_merge_request(self.project.plan())
		return info

	#============================
	def export(self) -> str:
		info = self.build()
		_, extension = os.path.splitext(self.output_file)
		with open(self.output_file, 'w', encoding='utf-8') as handle:
			if extension.lower() == '.json':
				json.dump(info, handle, indent=2)
				handle.write("\n")
			else:
				handle.write(yaml.safe_dump(info, sort_keys=False))
		return self.output_file
