class BitInputStream(object):

	def __init__(self, inp):
		self.inp = inp
		self.bitbuffer = 0
		self.bitbufferlen = 0


	def tell(self):
		# Bits already buffered have been consumed from the file but not from the stream
		return self.inp.tell() - self.bitbufferlen // 8


	def seek(self, offset):
		if offset < 0:
			raise ValueError("Negative seek offset: {}".format(offset))
		self.inp.seek(offset)
		self.bitbuffer = 0
		self.bitbufferlen = 0


	def read_bytes(self, n):
		if self.bitbufferlen % 8 != 0:
			raise ValueError("Stream is not byte aligned")
		offset = self.tell()
		head = bytearray()
		while self.bitbufferlen > 0 and len(head) < n:
			head.append(self.read_uint(8))
		result = bytes(head) + self.inp.read(n - len(head))
		if len(result) != n:
			raise EOFError("Expected {} bytes at offset {}, got {}".format(n, offset, len(result)))
		return result


	def read_uint(self, n):
		while self.bitbufferlen < n:
			temp = self.inp.read(1)
			if len(temp) == 0:
				raise EOFError("Expected {} more bits at offset {}, got end of stream".format(
					n - self.bitbufferlen, self.inp.tell()))
			temp = temp[0]
			self.bitbuffer = (self.bitbuffer << 8) | temp
			self.bitbufferlen += 8
		self.bitbufferlen -= n
		result = (self.bitbuffer >> self.bitbufferlen) & ((1 << n) - 1)
		self.bitbuffer &= (1 << self.bitbufferlen) - 1
		return result


	def close(self):
		self.inp.close()


	def __enter__(self):
		return self


	def __exit__(self, type, value, traceback):
		self.close()
