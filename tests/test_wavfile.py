#!/usr/bin/env python3

"""
Pytest coverage for the PCM16 WAV encoder.
"""

# Standard Library
import os
import struct
import sys
import tempfile
import wave

# PIP3 modules
import numpy
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from clipmixlib.core import wavfile
from clipmixlib.core.mixer import AudioPCM
from clipmixlib.core.mixer import MixedAudioBuffer
from clipmixlib.core.mixer import mix_clips

#============================================

def _data_samples(payload: bytes) -> numpy.ndarray:
	"""
	Return the PCM16 samples after the 44-byte header.
	"""
	return numpy.frombuffer(payload[44:], dtype='<i2')

#============================================

def test_header_fields_stereo() -> None:
	"""
	Ensure header sizes for 44.1 kHz stereo with 1000 total samples.
	"""
	samples = numpy.zeros((2, 500), dtype=numpy.float32)
	payload = wavfile.encode_wav(MixedAudioBuffer(samples, 44100))
	header = wavfile.parse_wav_header(payload)
	assert header['data_bytes'] == 4000
	assert header['chunk_size'] == 4036
	assert header['block_align'] == 4
	assert header['byte_rate'] == 44100 * 4
	assert header['format_tag'] == 1
	assert header['fmt_size'] == 16
	assert header['bits_per_sample'] == 16
	assert header['channels'] == 2
	assert header['sample_rate'] == 44100
	assert len(payload) == 44 + 4000

#============================================

def test_header_byte_layout() -> None:
	"""
	Ensure chunk ids sit at their canonical offsets.
	"""
	payload = wavfile.encode_wav(AudioPCM(numpy.zeros((1, 3)), 8000))
	assert payload[0:4] == b'RIFF'
	assert payload[8:12] == b'WAVE'
	assert payload[12:16] == b'fmt '
	assert payload[36:40] == b'data'
	assert struct.unpack('<I', payload[40:44])[0] == 6

#============================================

def test_quantization_rules() -> None:
	"""
	Ensure asymmetric scaling, clamping and half-up rounding.
	"""
	values = [0.0, 1.0, -1.0, 0.5, -0.5, 2.5, -3.0]
	quantized = wavfile.quantize_pcm16(values)
	assert list(quantized) == [0, 32767, -32768, 16384, -16384, 32767, -32768]

#============================================

def test_non_normalized_sum_clips_at_encode() -> None:
	"""
	Ensure 0.9 + 0.9 is clipped to 32767, not rescaled.
	"""
	first = AudioPCM(numpy.full((1, 4), 0.9), 48000)
	second = AudioPCM(numpy.full((1, 4), 0.9), 48000)
	payload = wavfile.encode_wav(mix_clips([(0, first), (0, second)]))
	assert list(_data_samples(payload)) == [32767] * 4

#============================================

def test_interleaving_frame_by_frame() -> None:
	"""
	Ensure channels interleave as ch0, ch1 per frame.
	"""
	channels = numpy.array([[1.0, 0.0, -1.0], [-1.0, 0.5, 1.0]])
	payload = wavfile.encode_wav(AudioPCM(channels, 8000))
	assert list(_data_samples(payload)) == [32767, -32768, 0, 16384, -32768, 32767]

#============================================

def test_deterministic_output() -> None:
	"""
	Ensure the same floats give the same bytes.
	"""
	rng = numpy.random.default_rng(7)
	channels = rng.uniform(-1.2, 1.2, size=(2, 256))
	first = wavfile.encode_wav(AudioPCM(channels, 22050))
	second = wavfile.encode_wav(AudioPCM(channels.copy(), 22050))
	assert first == second

#============================================

def test_zero_length_buffer_encodes_header_only() -> None:
	"""
	Ensure an explicit empty buffer gives a bare 44-byte file.
	"""
	payload = wavfile.encode_wav(AudioPCM(numpy.zeros((2, 0)), 48000))
	assert len(payload) == 44
	assert wavfile.parse_wav_header(payload)['data_bytes'] == 0

#============================================

def test_encode_none_raises() -> None:
	"""
	Ensure a missing mix is not silently written.
	"""
	with pytest.raises(RuntimeError):
		wavfile.encode_wav(None)

#============================================

def test_parse_rejects_short_or_foreign_payloads() -> None:
	"""
	Ensure bad headers are refused.
	"""
	with pytest.raises(RuntimeError):
		wavfile.parse_wav_header(b'RIFF')
	with pytest.raises(RuntimeError):
		wavfile.parse_wav_header(b'JUNK' + bytes(40))

#============================================

def test_written_file_readable_by_wave_module() -> None:
	"""
	Ensure the standard wave reader accepts the output and values survive.
	"""
	channels = numpy.array([[0.25, -0.25, 0.0, 0.75]])
	with tempfile.TemporaryDirectory() as temp_dir:
		wav_path = os.path.join(temp_dir, "mix.wav")
		wavfile.write_wav_file(wav_path, AudioPCM(channels, 16000))
		with wave.open(wav_path, 'rb') as wav_handle:
			assert wav_handle.getnchannels() == 1
			assert wav_handle.getframerate() == 16000
			assert wav_handle.getsampwidth() == 2
			assert wav_handle.getnframes() == 4
		pcm = wavfile.read_wav_file(wav_path)
	assert pcm.sample_rate == 16000
	assert numpy.allclose(pcm.channels, channels, atol=1.0 / 32767)

#============================================

class _OversizedBuffer():
	"""
	Buffer shape of a stereo mix well past 4 GiB, without the samples.
	"""
	sample_rate = 48000
	channel_count = 2
	sample_count = 2 ** 30
	channels = None

#============================================

def test_wav_size_limit() -> None:
	"""
	Ensure RIFF size overflow raises a clear error.
	"""
	largest = wavfile.MAX_CHUNK_SIZE - 36
	header = wavfile.build_header(48000, 2, largest)
	assert struct.unpack('<I', header[4:8])[0] == wavfile.MAX_CHUNK_SIZE
	with pytest.raises(RuntimeError, match="exceeds wav size limit"):
		wavfile.build_header(48000, 2, largest + 1)
	with pytest.raises(RuntimeError, match="exceeds wav size limit"):
		wavfile.encode_wav(_OversizedBuffer())
