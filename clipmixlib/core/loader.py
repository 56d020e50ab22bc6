#!/usr/bin/env python3

import os
import tempfile
import yaml
from clipmixlib import medialib
from clipmixlib.core import utils
from clipmixlib.core import filtergraph
from clipmixlib.core import timeline as timeline_module
from clipmixlib.core.timeline import Timeline

#============================================

def _as_int(value, name: str) -> int:
	if isinstance(value, bool):
		raise RuntimeError(f"{name} must be an integer")
	try:
		return int(value)
	except (TypeError, ValueError) as exc:
		raise RuntimeError(f"{name} must be an integer") from exc

#============================================

def _as_float(value, name: str) -> float:
	if isinstance(value, bool):
		raise RuntimeError(f"{name} must be a number")
	try:
		return float(value)
	except (TypeError, ValueError) as exc:
		raise RuntimeError(f"{name} must be a number") from exc

#============================================

class ProjectData():
	def __init__(self):
		self.yaml_file = None
		self.output_override = None
		self.dry_run = False
		self.keep_temp = False
		self.cache_dir = None
		self.cache_dir_created = False
		self.temp_counter = 0
		self.data = {}
		self.profile = {}
		self.timeline = None
		self.sources = {}
		self.output = {}

#============================================

class ProjectLoader():
	def __init__(self, yaml_file: str, output_override: str = None,
		dry_run: bool = False, keep_temp: bool = False, cache_dir: str = None):
		self.yaml_file = yaml_file
		self.output_override = output_override
		self.dry_run = dry_run
		self.keep_temp = keep_temp
		self.cache_dir = cache_dir

	#============================
	def load(self) -> ProjectData:
		project = ProjectData()
		project.yaml_file = self.yaml_file
		project.output_override = self.output_override
		project.dry_run = self.dry_run
		project.keep_temp = self.keep_temp
		project.data = self._load_yaml()
		self._validate_required_keys(project.data)
		project.profile = self._parse_profile(project.data.get('profile', {}))
		project.timeline = Timeline(project.profile['timeline_seconds'])
		self._parse_tracks(project, project.data.get('tracks'))
		project.output = self._parse_output(project, project.data.get('output', {}))
		self._prepare_cache_dir(project)
		return project

	#============================
	def _prepare_cache_dir(self, project: ProjectData) -> None:
		cache_dir = self.cache_dir
		cache_dir_created = False
		if cache_dir is None:
			cache_dir = tempfile.mkdtemp(prefix="clipmix-run-")
			cache_dir_created = True
		else:
			if not os.path.exists(cache_dir):
				os.makedirs(cache_dir)
		project.cache_dir = cache_dir
		project.cache_dir_created = cache_dir_created

	#============================
	def _load_yaml(self) -> dict:
		file_size = os.path.getsize(self.yaml_file)
		if file_size > 10 ** 7:
			raise RuntimeError("yaml file is larger than 10MB")
		with open(self.yaml_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if not isinstance(data, dict):
			raise RuntimeError("project yaml must be a mapping at the top level")
		return data

	#============================
	def _validate_required_keys(self, data: dict) -> None:
		if data.get('clipmix') != 1:
			raise RuntimeError("clipmix must be set to 1")
		if data.get('tracks') is None:
			raise RuntimeError("missing required key: tracks")

	#============================
	def _parse_profile(self, profile: dict) -> dict:
		if profile is None:
			profile = {}
		if not isinstance(profile, dict):
			raise RuntimeError("profile must be a mapping")
		audio = profile.get('audio', {}) or {}
		if not isinstance(audio, dict):
			raise RuntimeError("profile.audio must be a mapping")
		sample_rate = _as_int(audio.get('sample_rate', filtergraph.DEFAULT_SAMPLE_RATE),
			'profile.audio.sample_rate')
		if sample_rate <= 0:
			raise RuntimeError("profile.audio.sample_rate must be positive")
		(channel_count, audio_mode) = utils.normalize_channels(audio.get('channels'))
		gap = profile.get('gap', {}) or {}
		if not isinstance(gap, dict):
			raise RuntimeError("profile.gap must be a mapping")
		gap_color = filtergraph.format_color(gap.get('color', filtergraph.DEFAULT_GAP_COLOR))
		gap_fps = gap.get('fps', filtergraph.DEFAULT_GAP_FPS)
		if _as_float(gap_fps, 'profile.gap.fps') <= 0:
			raise RuntimeError("profile.gap.fps must be positive")
		gap_precision = _as_int(gap.get('precision', filtergraph.DEFAULT_GAP_PRECISION),
			'profile.gap.precision')
		if gap_precision < 0:
			raise RuntimeError("profile.gap.precision must be zero or positive")
		resolution = profile.get('default_resolution',
			[filtergraph.DEFAULT_WIDTH, filtergraph.DEFAULT_HEIGHT])
		if not isinstance(resolution, (list, tuple)) or len(resolution) != 2:
			raise RuntimeError("profile.default_resolution must be [width, height]")
		timeline_seconds = profile.get('timeline_seconds')
		if timeline_seconds is not None:
			timeline_seconds = float(utils.parse_timecode(timeline_seconds))
		return {
			'timeline_seconds': timeline_seconds,
			'sample_rate': sample_rate,
			'channels': channel_count,
			'audio_mode': audio_mode,
			'gap_color': gap_color,
			'gap_fps': gap_fps,
			'gap_precision': gap_precision,
			'default_width': _as_int(resolution[0], 'profile.default_resolution'),
			'default_height': _as_int(resolution[1], 'profile.default_resolution'),
		}

	#============================
	def _parse_tracks(self, project: ProjectData, tracks: dict) -> None:
		if not isinstance(tracks, dict):
			raise RuntimeError("tracks must be a mapping with audio and video lists")
		for kind in tracks.keys():
			if kind not in timeline_module.CLIP_KINDS:
				raise RuntimeError(f"unsupported track kind: {kind}")
		for kind in timeline_module.CLIP_KINDS:
			track_list = tracks.get(kind) or []
			if not isinstance(track_list, list):
				raise RuntimeError(f"tracks.{kind} must be a list")
			for track_data in track_list:
				self._parse_track(project, kind, track_data)

	#============================
	def _parse_track(self, project: ProjectData, kind: str, track_data: dict) -> None:
		if not isinstance(track_data, dict):
			raise RuntimeError(f"tracks.{kind} entries must be mappings")
		if track_data.get('enabled') is False:
			return
		track_id = project.timeline.add_track(kind, track_id=track_data.get('id'))
		clips = track_data.get('clips') or []
		if not isinstance(clips, list):
			raise RuntimeError(f"track {track_id} clips must be a list")
		for clip_data in clips:
			self._parse_clip(project, track_id, kind, clip_data)

	#============================
	def _parse_clip(self, project: ProjectData, track_id: str, kind: str,
		clip_data: dict) -> None:
		if not isinstance(clip_data, dict):
			raise RuntimeError("clip entries must be mappings")
		if clip_data.get('enabled') is False:
			return
		media_file = clip_data.get('file')
		if media_file is None:
			raise RuntimeError(f"clip in track {track_id} is missing file")
		utils.ensure_file_exists(media_file)
		offset_pixels = self._parse_offset(clip_data)
		duration = clip_data.get('duration')
		width = None
		height = None
		resolution = clip_data.get('resolution')
		if resolution is not None:
			if not isinstance(resolution, (list, tuple)) or len(resolution) != 2:
				raise RuntimeError("clip resolution must be [width, height]")
			width = _as_int(resolution[0], 'clip resolution')
			height = _as_int(resolution[1], 'clip resolution')
		if duration is None:
			if kind == timeline_module.VIDEO:
				info = medialib.probeVideo(media_file)
				duration = info['duration_seconds']
				if width is None:
					width = info['width']
					height = info['height']
			else:
				duration = medialib.getDuration(media_file)
		else:
			duration = float(utils.parse_timecode(duration))
		clip_id = project.timeline.add_clip(track_id, media_file,
			duration_seconds=duration, width=width, height=height,
			clip_id=clip_data.get('id'))
		# move_clip applies the container clamp
		project.timeline.move_clip(clip_id, offset_pixels)
		project.sources[clip_id] = media_file

	#============================
	def _parse_offset(self, clip_data: dict) -> int:
		has_offset = clip_data.get('offset') is not None
		has_at = clip_data.get('at') is not None
		if has_offset and has_at:
			raise RuntimeError("clip cannot set both offset and at")
		if has_at:
			seconds = utils.parse_timecode(clip_data.get('at'))
			offset_pixels = utils.pixels_from_seconds(seconds)
		elif has_offset:
			raw_offset = clip_data.get('offset')
			if isinstance(raw_offset, bool) or not isinstance(raw_offset, int):
				raise RuntimeError("clip offset must be an integer pixel count")
			offset_pixels = raw_offset
		else:
			offset_pixels = 0
		if offset_pixels < 0:
			raise RuntimeError("clip offset must be non-negative")
		return offset_pixels

	#============================
	def _parse_output(self, project: ProjectData, output: dict) -> dict:
		if output is None:
			output = {}
		if not isinstance(output, dict):
			raise RuntimeError("output must be a mapping")
		base, _ = os.path.splitext(self.yaml_file)
		video_file = output.get('video_file', base + ".mp4")
		if project.output_override is not None:
			video_file = project.output_override
		audio_file = output.get('audio_file', base + "-mix.wav")
		return {
			'video_file': video_file,
			'audio_file': audio_file,
			'use_mixed_audio': bool(output.get('use_mixed_audio', True)),
		}
