#!/usr/bin/env python3

import math
import os
import shlex
import subprocess
import time
from decimal import Decimal
from decimal import InvalidOperation
from fractions import Fraction

#============================================

# one timeline second is drawn as this many pixels
PIXELS_PER_SECOND = 50

#============================================

def is_quiet_mode() -> bool:
	value = os.environ.get('CLIPMIX_QUIET', '')
	return value.strip().lower() in ('1', 'true', 'yes', 'on')

#============================================

def run_process(cmd: list, capture_output: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command, echoing it first.

	Args:
		cmd: Command list to execute.
		capture_output: Capture stdout and stderr when True.

	Returns:
		subprocess.CompletedProcess: The completed process, stdout as bytes.
	"""
	showcmd = shlex.join(cmd)
	if not is_quiet_mode():
		print(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, capture_output=capture_output)
	return proc

#============================================

def seconds_from_pixels(offset_pixels: int) -> float:
	return offset_pixels / PIXELS_PER_SECOND

#============================================

def round_half_up_fraction(value: Fraction) -> int:
	numerator = value.numerator
	denominator = value.denominator
	whole = numerator // denominator
	remainder = numerator - (whole * denominator)
	if remainder * 2 >= denominator:
		return whole + 1
	return whole

#============================================

def pixels_from_seconds(seconds) -> int:
	seconds_fraction = Fraction(str(seconds))
	return round_half_up_fraction(seconds_fraction * PIXELS_PER_SECOND)

#============================================

def width_pixels_from_seconds(seconds: float) -> int:
	return int(math.ceil(seconds * PIXELS_PER_SECOND))

#============================================

def delay_samples(offset_pixels: int, sample_rate: int) -> int:
	"""
	Sample index where a clip placed at offset_pixels starts.

	Computed as floor((offset_pixels / 50) * sample_rate) in integer
	arithmetic so no float error can shift the result by one sample.
	"""
	if offset_pixels < 0:
		raise RuntimeError("offset pixels must be non-negative")
	return (int(offset_pixels) * int(sample_rate)) // PIXELS_PER_SECOND

#============================================

def parse_timecode(raw_time) -> Decimal:
	if raw_time is None:
		raise RuntimeError("time value is required")
	if isinstance(raw_time, bool):
		raise RuntimeError("time values must be int, float, or timecode string")
	if isinstance(raw_time, int):
		return Decimal(raw_time)
	if isinstance(raw_time, float):
		return Decimal(str(raw_time))
	if isinstance(raw_time, str):
		try:
			return _parse_timecode_text(raw_time.strip())
		except InvalidOperation as exc:
			raise RuntimeError(f"invalid timecode: {raw_time}") from exc
	raise RuntimeError("time values must be int, float, or timecode string")

#============================================

def _parse_timecode_text(value: str) -> Decimal:
	if ':' not in value:
		return Decimal(value)
	parts = value.split(':')
	if len(parts) > 3:
		raise RuntimeError(f"invalid timecode: {value}")
	seconds = Decimal(parts.pop())
	minutes = Decimal(parts.pop())
	hours = Decimal(0)
	if len(parts) > 0:
		hours = Decimal(parts.pop())
	return hours * Decimal(3600) + minutes * Decimal(60) + seconds

#============================================

def normalize_channels(raw_channels) -> tuple:
	if raw_channels is None:
		return (2, 'stereo')
	if isinstance(raw_channels, int) and not isinstance(raw_channels, bool):
		if raw_channels == 1:
			return (1, 'mono')
		if raw_channels == 2:
			return (2, 'stereo')
	channels = str(raw_channels).lower()
	if channels == 'mono':
		return (1, 'mono')
	if channels == 'stereo':
		return (2, 'stereo')
	raise RuntimeError("profile.audio.channels must be mono or stereo")

#============================================

def format_seconds(seconds: float, precision: int) -> str:
	if precision < 0:
		raise RuntimeError("precision must be zero or positive")
	return f"{seconds:.{precision}f}"

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.exists(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def make_timestamp() -> str:
	datestamp = time.strftime("%y%b%d").lower()
	uppercase = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
	hourstamp = uppercase[(time.localtime()[3]) % 26]
	minstamp = f"{time.localtime()[4]:02d}"
	secstamp = uppercase[(time.localtime()[5]) % 26]
	timestamp = datestamp + hourstamp + minstamp + secstamp
	return timestamp
