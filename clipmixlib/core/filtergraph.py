#!/usr/bin/env python3

"""
Turn a segment plan into an ffmpeg-style filter graph description.

Nothing here touches samples or pixels; the graph is plain data plus
the text renderings an ffmpeg process expects.
"""

import PIL.ImageColor
from clipmixlib.core import utils

#============================================

DEFAULT_WIDTH = 720
DEFAULT_HEIGHT = 1280
DEFAULT_GAP_COLOR = 'black'
DEFAULT_GAP_FPS = 60
DEFAULT_GAP_PRECISION = 2
DEFAULT_SAMPLE_RATE = 48000
DEFAULT_AUDIO_MODE = 'stereo'
SOURCE_NAME_TEMPLATE = "video_{clip_id}.mp4"

#============================================

def default_profile() -> dict:
	return {
		'default_width': DEFAULT_WIDTH,
		'default_height': DEFAULT_HEIGHT,
		'gap_color': DEFAULT_GAP_COLOR,
		'gap_fps': DEFAULT_GAP_FPS,
		'gap_precision': DEFAULT_GAP_PRECISION,
		'sample_rate': DEFAULT_SAMPLE_RATE,
		'audio_mode': DEFAULT_AUDIO_MODE,
	}

#============================================

def format_color(value) -> str:
	"""
	Validate a gap colour and return it in a form ffmpeg accepts.

	Named colours and #rrggbb strings pass the Pillow colour parser;
	named colours are kept by name, everything else becomes 0xRRGGBB.
	"""
	if value is None:
		return DEFAULT_GAP_COLOR
	if isinstance(value, (list, tuple)):
		if len(value) != 3:
			raise RuntimeError("gap color must have three channels")
		rgb = tuple(int(channel) for channel in value)
	elif isinstance(value, str):
		try:
			rgb = PIL.ImageColor.getrgb(value)
		except ValueError as exc:
			raise RuntimeError(f"invalid gap color: {value}") from exc
		if value.isalpha():
			return value.lower()
	else:
		raise RuntimeError("invalid gap color value")
	for channel in rgb[:3]:
		if channel < 0 or channel > 255:
			raise RuntimeError("gap color channels must be 0-255")
	return f"0x{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"

#============================================

class FilterGraph():
	def __init__(self, inputs: list, steps: list, concat: dict, resolution: tuple):
		self.inputs = inputs
		self.steps = steps
		self.concat = concat
		self.resolution = resolution

	#============================
	def to_dict(self) -> dict:
		return {
			'resolution': list(self.resolution),
			'inputs': [dict(item) for item in self.inputs],
			'steps': [dict(step) for step in self.steps],
			'concat': dict(self.concat),
		}

	#============================
	def filter_complex(self, sink_audio: bool = False) -> str:
		"""
		Join the steps into ffmpeg -filter_complex text.

		With sink_audio the concatenated audio goes to anullsink, for
		renders that map a separate mixed audio input instead.
		"""
		parts = [step['text'] for step in self.steps]
		parts.append(self.concat['text'])
		if sink_audio:
			audio_out = self.concat['outputs'][1]
			parts.append(f"[{audio_out}]anullsink")
		return "; ".join(parts)

	#============================
	def input_files(self, sources: dict = None) -> list:
		files = []
		for item in self.inputs:
			filepath = item['file']
			if sources is not None:
				filepath = sources.get(item['clip_id'], filepath)
			files.append(filepath)
		return files

	#============================
	def ffmpeg_args(self, output_file: str, sources: dict = None,
		mixed_audio_file: str = None) -> list:
		"""
		Build the ffmpeg command line for this graph.

		Args:
			output_file: Output container path.
			sources: Optional clip id to file path mapping; clips not in
				the mapping use the agreed video_{clip_id}.mp4 name.
			mixed_audio_file: Optional wav that replaces the
				concatenated segment audio in the output.

		Returns:
			list: Command arguments, ffmpeg first.
		"""
		cmd = ["ffmpeg", "-y"]
		for filepath in self.input_files(sources):
			cmd += ["-i", filepath]
		sink_audio = mixed_audio_file is not None
		if sink_audio:
			cmd += ["-i", mixed_audio_file]
		cmd += ["-filter_complex", self.filter_complex(sink_audio=sink_audio)]
		(video_out, audio_out) = self.concat['outputs']
		cmd += ["-map", f"[{video_out}]"]
		if sink_audio:
			cmd += ["-map", f"{len(self.inputs)}:a"]
		else:
			cmd += ["-map", f"[{audio_out}]"]
		cmd.append(output_file)
		return cmd

#============================================

class FilterGraphComposer():
	def __init__(self, profile: dict = None):
		merged = default_profile()
		if profile is not None:
			for key, value in profile.items():
				if value is not None:
					merged[key] = value
		self.profile = merged
		self.gap_color = format_color(merged['gap_color'])
		self.precision = int(merged['gap_precision'])
		if self.precision < 0:
			raise RuntimeError("gap precision must be zero or positive")

	#============================
	def compose(self, plan) -> FilterGraph:
		clip_info = {entry['clip_id']: entry for entry in plan.precedence}
		(width, height) = self._reference_resolution(plan, clip_info)
		inputs = []
		steps = []
		for segment in plan.segments:
			# concat position; gaps too short for the precision are dropped
			index = len(steps) // 2
			if segment['type'] == 'video':
				entry = clip_info.get(segment['clip_id'], {})
				input_index = len(inputs)
				inputs.append({
					'index': input_index,
					'clip_id': segment['clip_id'],
					'media_ref': entry.get('media_ref'),
					'file': SOURCE_NAME_TEMPLATE.format(clip_id=segment['clip_id']),
				})
				steps += self._source_steps(index, input_index)
			elif segment['type'] == 'gap':
				if self.gap_rounds_to_zero(segment['duration']):
					continue
				steps += self._gap_steps(index, segment['duration'], width, height)
			else:
				raise RuntimeError(f"unsupported segment type {segment['type']}")
		concat = self._concat_step(len(steps) // 2)
		return FilterGraph(inputs, steps, concat, (width, height))

	#============================
	def gap_rounds_to_zero(self, duration: float) -> bool:
		"""
		True when a gap would be written as a zero duration.

		ffmpeg reads atrim=duration=0 as no limit, so such a gap would
		never end.
		"""
		gap_text = utils.format_seconds(duration, self.precision)
		return float(gap_text) <= 0

	#============================
	def _reference_resolution(self, plan, clip_info: dict) -> tuple:
		width = int(self.profile['default_width'])
		height = int(self.profile['default_height'])
		video_segments = plan.video_segments()
		if len(video_segments) == 0:
			return (width, height)
		entry = clip_info.get(video_segments[0]['clip_id'], {})
		if entry.get('width') and entry.get('height'):
			return (int(entry['width']), int(entry['height']))
		return (width, height)

	#============================
	def _source_steps(self, index: int, input_index: int) -> list:
		video_label = f"vS{index}"
		audio_label = f"aS{index}"
		return [
			{
				'label': video_label,
				'stream': 'video',
				'segment': index,
				'input': input_index,
				'filters': ['setpts=PTS-STARTPTS'],
				'text': f"[{input_index}:v]setpts=PTS-STARTPTS[{video_label}]",
			},
			{
				'label': audio_label,
				'stream': 'audio',
				'segment': index,
				'input': input_index,
				'filters': ['asetpts=PTS-STARTPTS'],
				'text': f"[{input_index}:a]asetpts=PTS-STARTPTS[{audio_label}]",
			},
		]

	#============================
	def _gap_steps(self, index: int, duration: float, width: int, height: int) -> list:
		video_label = f"vS{index}"
		audio_label = f"aS{index}"
		gap_text = utils.format_seconds(duration, self.precision)
		fps = self.profile['gap_fps']
		audio_mode = self.profile['audio_mode']
		sample_rate = int(self.profile['sample_rate'])
		video_filters = [
			f"color=c={self.gap_color}:s={width}x{height}:d={gap_text}:r={fps}",
			"setpts=PTS-STARTPTS",
		]
		audio_filters = [
			f"anullsrc=cl={audio_mode}:r={sample_rate}",
			f"atrim=duration={gap_text}",
			"asetpts=PTS-STARTPTS",
		]
		return [
			{
				'label': video_label,
				'stream': 'video',
				'segment': index,
				'input': None,
				'filters': video_filters,
				'text': ",".join(video_filters) + f"[{video_label}]",
			},
			{
				'label': audio_label,
				'stream': 'audio',
				'segment': index,
				'input': None,
				'filters': audio_filters,
				'text': ",".join(audio_filters) + f"[{audio_label}]",
			},
		]

	#============================
	def _concat_step(self, count: int) -> dict:
		labels = []
		for index in range(count):
			labels.append(f"vS{index}")
			labels.append(f"aS{index}")
		inputs_text = "".join(f"[{label}]" for label in labels)
		outputs = ['outv', 'outa']
		return {
			'inputs': labels,
			'n': count,
			'outputs': outputs,
			'text': f"{inputs_text}concat=n={count}:v=1:a=1[outv][outa]",
		}
