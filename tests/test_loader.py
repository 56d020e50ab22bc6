#!/usr/bin/env python3

"""
Tests for project yaml loading.
"""

# Standard Library
import os
import sys
import tempfile
import unittest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from clipmixlib.core.loader import ProjectLoader

#============================================

def _touch(path: str) -> str:
	"""
	Create an empty placeholder media file.
	"""
	with open(path, "w") as handle:
		handle.write("")
	return path

#============================================

def _write_project_yaml(path: str, lines: list) -> None:
	"""Write project yaml lines to disk.

	Args:
		path: YAML output path.
		lines: Lines of yaml text.
	"""
	with open(path, "w") as yaml_file:
		yaml_file.write("\n".join(lines))
		yaml_file.write("\n")

#============================================

class ProjectLoaderTest(unittest.TestCase):
	#============================================
	def test_tracks_and_clips_loaded(self) -> None:
		"""Ensure tracks, offsets and profile values are parsed."""
		with tempfile.TemporaryDirectory() as temp_dir:
			voice = _touch(os.path.join(temp_dir, "voice.wav"))
			clip_a = _touch(os.path.join(temp_dir, "a.mp4"))
			clip_b = _touch(os.path.join(temp_dir, "b.mp4"))
			yaml_path = os.path.join(temp_dir, "project.yaml")
			_write_project_yaml(yaml_path, [
				"clipmix: 1",
				"profile:",
				"  timeline_seconds: 30",
				"  audio: {sample_rate: 44100, channels: mono}",
				"  gap: {color: \"#000010\", fps: 25, precision: 3}",
				"tracks:",
				"  audio:",
				"    - clips:",
				f"        - {{file: \"{voice}\", offset: 100, duration: 4.0, id: voice}}",
				"  video:",
				"    - id: top",
				"      clips:",
				f"        - {{file: \"{clip_a}\", at: \"00:01.5\", duration: 2, resolution: [640, 360], id: a}}",
				"    - clips:",
				f"        - {{file: \"{clip_b}\", duration: 1, id: b, enabled: false}}",
			])
			project = ProjectLoader(yaml_path, cache_dir=os.path.join(temp_dir, "cache")).load()
			timeline = project.timeline
			self.assertEqual(timeline.container_width_pixels, 1500)
			self.assertEqual(timeline.get_clip('voice').offset_pixels, 100)
			self.assertEqual(timeline.get_clip('a').offset_pixels, 75)
			self.assertEqual(timeline.get_clip('a').width, 640)
			self.assertEqual(timeline.get_track('top').group_index, 0)
			self.assertEqual(len(timeline.tracks_of_kind('video')), 2)
			self.assertEqual(list(timeline.iter_clips('video'))[0].id, 'a')
			self.assertEqual(len(list(timeline.iter_clips('video'))), 1)
			self.assertEqual(project.profile['sample_rate'], 44100)
			self.assertEqual(project.profile['channels'], 1)
			self.assertEqual(project.profile['gap_color'], '0x000010')
			self.assertEqual(project.profile['gap_precision'], 3)
			self.assertEqual(project.sources['a'], clip_a)
			self.assertEqual(project.output['video_file'], os.path.join(temp_dir, "project.mp4"))
			self.assertTrue(os.path.isdir(project.cache_dir))

	#============================================
	def test_offset_clamped_to_container(self) -> None:
		"""Ensure offsets past the container are clamped on load."""
		with tempfile.TemporaryDirectory() as temp_dir:
			clip_a = _touch(os.path.join(temp_dir, "a.mp4"))
			yaml_path = os.path.join(temp_dir, "project.yaml")
			_write_project_yaml(yaml_path, [
				"clipmix: 1",
				"profile: {timeline_seconds: 4}",
				"tracks:",
				"  video:",
				"    - clips:",
				f"        - {{file: \"{clip_a}\", offset: 900, duration: 1, id: a}}",
			])
			project = ProjectLoader(yaml_path, cache_dir=temp_dir).load()
			self.assertEqual(project.timeline.get_clip('a').offset_pixels, 150)

	#============================================
	def test_invalid_projects_raise(self) -> None:
		"""Ensure malformed projects are rejected."""
		with tempfile.TemporaryDirectory() as temp_dir:
			clip_a = _touch(os.path.join(temp_dir, "a.mp4"))
			yaml_path = os.path.join(temp_dir, "project.yaml")
			bad_projects = [
				["clipmix: 2", "tracks: {}"],
				["clipmix: 1"],
				["clipmix: 1", "tracks: {subtitle: []}"],
				["clipmix: 1", "tracks:", "  video:", "    - clips:",
					f"        - {{file: \"{clip_a}\", offset: 10, at: 1.0, duration: 1}}"],
				["clipmix: 1", "tracks:", "  video:", "    - clips:",
					f"        - {{file: \"{clip_a}\", offset: -5, duration: 1}}"],
				["clipmix: 1", "tracks:", "  video:", "    - clips:",
					"        - {file: \"/does/not/exist.mp4\", duration: 1}"],
				["clipmix: 1", "profile: {audio: {channels: surround}}", "tracks: {}"],
			]
			for lines in bad_projects:
				_write_project_yaml(yaml_path, lines)
				with self.assertRaises(RuntimeError):
					ProjectLoader(yaml_path, cache_dir=temp_dir).load()

	#============================================
	def test_malformed_values_raise_runtime_error(self) -> None:
		"""Ensure unparsable numbers and timecodes give loader errors."""
		with tempfile.TemporaryDirectory() as temp_dir:
			clip_a = _touch(os.path.join(temp_dir, "a.mp4"))
			yaml_path = os.path.join(temp_dir, "project.yaml")
			clip_line = f"        - {{file: \"{clip_a}\", duration: 1, id: a}}"
			bad_profiles = [
				"profile: {audio: {sample_rate: fast}}",
				"profile: {gap: {fps: quick}}",
				"profile: {gap: {precision: high}}",
				"profile: {default_resolution: [wide, 1280]}",
				"profile: {timeline_seconds: soon}",
				"profile: {timeline_seconds: \"1:2:3:4\"}",
			]
			for profile_line in bad_profiles:
				_write_project_yaml(yaml_path, ["clipmix: 1", profile_line, "tracks: {}"])
				with self.assertRaises(RuntimeError) as context:
					ProjectLoader(yaml_path, cache_dir=temp_dir).load()
				self.assertIs(type(context.exception), RuntimeError)
			bad_clips = [
				f"        - {{file: \"{clip_a}\", duration: long}}",
				f"        - {{file: \"{clip_a}\", at: \"00:xx\", duration: 1}}",
				f"        - {{file: \"{clip_a}\", duration: 1, resolution: [640, tall]}}",
			]
			for bad_clip in bad_clips:
				_write_project_yaml(yaml_path, ["clipmix: 1", "tracks:", "  video:",
					"    - clips:", clip_line.replace("id: a", "id: ok"), bad_clip])
				with self.assertRaises(RuntimeError) as context:
					ProjectLoader(yaml_path, cache_dir=temp_dir).load()
				self.assertIs(type(context.exception), RuntimeError)

	#============================================
	def test_output_override(self) -> None:
		"""Ensure the command line output wins over the yaml."""
		with tempfile.TemporaryDirectory() as temp_dir:
			yaml_path = os.path.join(temp_dir, "project.yaml")
			_write_project_yaml(yaml_path, [
				"clipmix: 1",
				"tracks: {}",
				"output: {video_file: yaml.mp4, audio_file: mix.wav}",
			])
			project = ProjectLoader(yaml_path, output_override="cli.mp4",
				cache_dir=temp_dir).load()
			self.assertEqual(project.output['video_file'], "cli.mp4")
			self.assertEqual(project.output['audio_file'], "mix.wav")

#============================================

def main() -> None:
	"""Run the unit tests."""
	unittest.main()

#============================================

if __name__ == "__main__":
	main()
