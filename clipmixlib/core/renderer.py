#!/usr/bin/env python3

import os
import shutil
from clipmixlib.core import utils
from clipmixlib.core.errors import RenderError

#============================================

class Renderer():
	def __init__(self, project):
		self.project = project

	#============================
	def render(self, graph, sources: dict, output_file: str,
		mixed_audio: bytes = None) -> str:
		"""
		Run ffmpeg on a composed filter graph.

		Args:
			graph: FilterGraph from the composer.
			sources: Clip id to media file mapping.
			output_file: Output container path.
			mixed_audio: Optional WAV bytes used as the output audio.

		Returns:
			str: The output file path.
		"""
		if shutil.which("ffmpeg") is None:
			raise RenderError("missing dependency: ffmpeg")
		for filepath in graph.input_files(sources):
			utils.ensure_file_exists(filepath)
		temp_files = []
		mixed_audio_file = None
		if mixed_audio is not None:
			mixed_audio_file = self._make_temp_path("merged_audio.wav")
			with open(mixed_audio_file, 'wb') as handle:
				handle.write(mixed_audio)
			temp_files.append(mixed_audio_file)
		cmd = graph.ffmpeg_args(output_file, sources=sources,
			mixed_audio_file=mixed_audio_file)
		try:
			proc = utils.run_process(cmd, capture_output=True)
		finally:
			if not self.project.keep_temp:
				self._cleanup_temp(temp_files)
		if proc.returncode != 0:
			stderr_text = proc.stderr.decode('utf-8', errors='replace').strip()
			raise RenderError(f"ffmpeg render failed with exit code {proc.returncode}",
				returncode=proc.returncode, stderr=stderr_text)
		if not os.path.isfile(output_file):
			raise RenderError(f"ffmpeg did not write {output_file}")
		if not utils.is_quiet_mode():
			print(f"mpv {output_file}")
		return output_file

	#============================
	def render_bytes(self, graph, sources: dict, mixed_audio: bytes = None,
		container: str = "mp4") -> bytes:
		output_file = self._make_temp_path(f"output.{container}")
		self.render(graph, sources, output_file, mixed_audio=mixed_audio)
		with open(output_file, 'rb') as handle:
			payload = handle.read()
		if not self.project.keep_temp:
			self._cleanup_temp([output_file])
		return payload

	#============================
	def _cleanup_temp(self, temp_files: list) -> None:
		for filepath in temp_files:
			if filepath and os.path.exists(filepath):
				os.remove(filepath)

	#============================
	def _make_temp_path(self, filename: str) -> str:
		self.project.temp_counter += 1
		tag = f"{utils.make_timestamp()}-{self.project.temp_counter:04d}"
		return os.path.join(self.project.cache_dir, f"{tag}-{filename}")
