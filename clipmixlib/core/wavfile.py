#!/usr/bin/env python3

"""
Canonical 44-byte-header PCM16 WAV encoding for mixed audio buffers.
"""

import struct
import wave
import numpy
from clipmixlib.core.mixer import AudioPCM

#============================================

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
PCM_FORMAT_TAG = 1
HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')
# RIFF sizes are unsigned 32-bit
MAX_CHUNK_SIZE = 0xFFFFFFFF

#============================================

def quantize_pcm16(samples) -> numpy.ndarray:
	"""
	Clamp float samples to [-1, 1] and convert to signed 16-bit.

	Negative values scale by 32768 and positive values by 32767, both
	rounded half up.
	"""
	values = numpy.clip(numpy.asarray(samples, dtype=numpy.float64), -1.0, 1.0)
	scaled = numpy.where(values < 0, values * 32768.0, values * 32767.0)
	quantized = numpy.floor(scaled + 0.5)
	return quantized.astype('<i2')

#============================================

def interleave(channels) -> numpy.ndarray:
	array = numpy.asarray(channels)
	if array.ndim == 1:
		return array
	# frame by frame: ch0, ch1, ch0, ch1, ...
	return array.T.reshape(-1)

#============================================

def build_header(sample_rate: int, channel_count: int, data_bytes: int) -> bytes:
	if 36 + data_bytes > MAX_CHUNK_SIZE:
		raise RuntimeError("mixed audio exceeds wav size limit")
	block_align = channel_count * (BITS_PER_SAMPLE // 8)
	byte_rate = sample_rate * block_align
	return HEADER_STRUCT.pack(
		b'RIFF', 36 + data_bytes, b'WAVE',
		b'fmt ', 16, PCM_FORMAT_TAG, channel_count, sample_rate,
		byte_rate, block_align, BITS_PER_SAMPLE,
		b'data', data_bytes,
	)

#============================================

def encode_wav(buffer: AudioPCM) -> bytes:
	"""
	Serialize a buffer to WAV bytes.

	Args:
		buffer: MixedAudioBuffer (or any AudioPCM).

	Returns:
		bytes: Header followed by interleaved little-endian PCM16 data.
	"""
	if buffer is None:
		raise RuntimeError("no audio buffer to encode")
	data_bytes = buffer.channel_count * buffer.sample_count * (BITS_PER_SAMPLE // 8)
	# size check runs before quantizing
	header = build_header(buffer.sample_rate, buffer.channel_count, data_bytes)
	samples = quantize_pcm16(interleave(buffer.channels))
	return header + samples.tobytes()

#============================================

def write_wav_file(wav_path: str, buffer: AudioPCM) -> str:
	payload = encode_wav(buffer)
	with open(wav_path, 'wb') as handle:
		handle.write(payload)
	return wav_path

#============================================

def parse_wav_header(payload: bytes) -> dict:
	"""
	Parse the canonical 44-byte header.

	Args:
		payload: WAV bytes, at least the header.

	Returns:
		dict: Header fields.
	"""
	if len(payload) < HEADER_SIZE:
		raise RuntimeError("wav payload is shorter than the 44-byte header")
	fields = HEADER_STRUCT.unpack(payload[:HEADER_SIZE])
	(riff, chunk_size, wave_id, fmt_id, fmt_size, format_tag, channels,
		sample_rate, byte_rate, block_align, bits_per_sample,
		data_id, data_bytes) = fields
	if riff != b'RIFF' or wave_id != b'WAVE':
		raise RuntimeError("not a RIFF/WAVE payload")
	if fmt_id != b'fmt ' or data_id != b'data':
		raise RuntimeError("wav payload is not in canonical 44-byte layout")
	return {
		'chunk_size': chunk_size,
		'fmt_size': fmt_size,
		'format_tag': format_tag,
		'channels': channels,
		'sample_rate': sample_rate,
		'byte_rate': byte_rate,
		'block_align': block_align,
		'bits_per_sample': bits_per_sample,
		'data_bytes': data_bytes,
	}

#============================================

def read_wav_file(wav_path: str) -> AudioPCM:
	"""
	Read a PCM16 wav file back into float samples.

	Args:
		wav_path: Wav file path.

	Returns:
		AudioPCM: Samples scaled to [-1, 1).
	"""
	with wave.open(wav_path, 'rb') as wav_handle:
		channels = wav_handle.getnchannels()
		sample_rate = wav_handle.getframerate()
		sample_width = wav_handle.getsampwidth()
		total_frames = wav_handle.getnframes()
		data = wav_handle.readframes(total_frames)
	if sample_width != 2:
		raise RuntimeError("only 16-bit wav files can be read")
	samples = numpy.frombuffer(data, dtype='<i2').astype(numpy.float32)
	samples = samples.reshape(-1, channels).T / 32768.0
	return AudioPCM(samples, sample_rate)
