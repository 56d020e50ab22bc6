#!/usr/bin/env python3

import shutil
from clipmixlib.core import utils
from clipmixlib.core import wavfile
from clipmixlib.core.filtergraph import FilterGraphComposer
from clipmixlib.core.loader import ProjectLoader
from clipmixlib.core.mixer import AudioMixer
from clipmixlib.core.planner import SegmentPlanner
from clipmixlib.core.renderer import Renderer
from clipmixlib.media import ffmpeg_extract

#============================================

class ClipmixProject():
	def __init__(self, yaml_file: str, output_override: str = None,
		dry_run: bool = False, keep_temp: bool = False, cache_dir: str = None,
		decoder=None):
		loader = ProjectLoader(yaml_file, output_override=output_override,
			dry_run=dry_run, keep_temp=keep_temp, cache_dir=cache_dir)
		self._project = loader.load()
		if decoder is None:
			decoder = ffmpeg_extract.make_decoder(
				sample_rate=self._project.profile['sample_rate'],
				channels=self._project.profile['channels'],
			)
		self._mixer = AudioMixer(decoder)
		self._composer = FilterGraphComposer(self._project.profile)
		self._renderer = Renderer(self._project)
		self.mixed_audio = None
		self.mix_generation = 0
		self._sync_public_fields()

	#============================
	def _sync_public_fields(self) -> None:
		self.yaml_file = self._project.yaml_file
		self.dry_run = self._project.dry_run
		self.keep_temp = self._project.keep_temp
		self.cache_dir = self._project.cache_dir
		self.profile = self._project.profile
		self.timeline = self._project.timeline
		self.sources = self._project.sources
		self.output = self._project.output

	#============================
	def mix_audio(self):
		"""
		Run a fresh mixing pass over the current audio clips.

		A failed pass leaves the previous buffer in place as the
		last known good result.
		"""
		buffer = self._mixer.mix_timeline(self.timeline)
		self.mix_generation += 1
		self.mixed_audio = buffer
		return buffer

	#============================
	def write_mixed_audio(self, wav_path: str = None, allow_empty: bool = False) -> str:
		if wav_path is None:
			wav_path = self.output['audio_file']
		buffer = self.mixed_audio
		if buffer is None or buffer.sample_count == 0:
			if not allow_empty:
				if not utils.is_quiet_mode():
					print("no audio clips to mix, skipping wav output")
				return None
		if buffer is None:
			raise RuntimeError("no mixed audio buffer, run mix_audio first")
		wavfile.write_wav_file(wav_path, buffer)
		utils.ensure_file_exists(wav_path)
		return wav_path

	#============================
	def plan(self):
		planner = SegmentPlanner(self.timeline)
		return planner.plan()

	#============================
	def compose(self, plan=None):
		if plan is None:
			plan = self.plan()
		return self._composer.compose(plan)

	#============================
	def dump_plan(self) -> dict:
		plan = self.plan()
		graph = self.compose(plan)
		return {
			'timeline_end': self.timeline.timeline_end(),
			'plan': plan.to_dict(),
			'graph': graph.to_dict(),
			'filter_complex': graph.filter_complex(),
		}

	#============================
	def render(self, output_file: str = None) -> str:
		if output_file is None:
			output_file = self.output['video_file']
		graph = self.compose()
		return self._renderer.render(graph, self.sources, output_file,
			mixed_audio=self._mixed_audio_bytes())

	#============================
	def render_bytes(self, container: str = "mp4") -> bytes:
		graph = self.compose()
		return self._renderer.render_bytes(graph, self.sources,
			mixed_audio=self._mixed_audio_bytes(), container=container)

	#============================
	def _mixed_audio_bytes(self) -> bytes:
		if not self.output['use_mixed_audio'] or self.mixed_audio is None:
			return None
		if self.mixed_audio.sample_count == 0:
			return None
		return wavfile.encode_wav(self.mixed_audio)

	#============================
	def validate(self, audio_only: bool = False) -> None:
		if audio_only:
			return
		self.plan()

	#============================
	def run(self, audio_only: bool = False) -> None:
		if self.dry_run:
			self.validate(audio_only)
			if not utils.is_quiet_mode():
				print("dry run: validation complete")
			return
		self.mix_audio()
		self.write_mixed_audio()
		if not audio_only:
			self.render()
		self.cleanup()

	#============================
	def cleanup(self) -> None:
		if not self.keep_temp and self._project.cache_dir_created:
			shutil.rmtree(self._project.cache_dir, ignore_errors=True)
