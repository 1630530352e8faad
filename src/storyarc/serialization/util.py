import io
import json
import struct
from collections.abc import Collection, Mapping
from typing import Callable, Optional, TypeVar

import numpy as np

K = TypeVar('K')
V = TypeVar('V')

def size_to_bytes(x:int) -> bytes:
    return x.to_bytes(4, byteorder="big", signed=False)

def size_to_f(x:int, f:io.IOBase) -> int:
    return f.write(size_to_bytes(x))

def size_from_f(f:io.IOBase) -> int:
    return int.from_bytes(f.read(4), byteorder="big")

def double_to_f(value:float, f:io.IOBase) -> int:
    return f.write(struct.pack(">d", value))

def double_from_f(f:io.IOBase) -> float:
    return struct.unpack(">d", f.read(8))[0]

def int_to_f(x:int, f:io.IOBase, blen:int=4, signed:bool=False) -> int:
    return f.write(x.to_bytes(blen, byteorder="big", signed=signed))

def int_from_f(f:io.IOBase, blen:int=4, signed:bool=False) -> int:
    return int.from_bytes(f.read(blen), byteorder="big", signed=signed)

def to_len_pre_f(s:str, f:io.IOBase, blen:int=2) -> int:
    b = s.encode("utf8")
    prefix = len(b).to_bytes(blen, byteorder="big")
    i = f.write(prefix)
    i += f.write(b)
    return i

def from_len_pre_f(f:io.IOBase, blen:int=2) -> str:
    prefix = f.read(blen)
    l = int.from_bytes(prefix, byteorder="big")
    b = f.read(l)
    return b.decode("utf8")

def optional_str_to_f(s:Optional[str], f:io.IOBase) -> int:
    bytes_written = 0
    if s is not None:
        bytes_written += bool_to_f(True, f)
        bytes_written += to_len_pre_f(s, f)
    else:
        bytes_written += bool_to_f(False, f)
    return bytes_written

def optional_str_from_f(f:io.IOBase) -> Optional[str]:
    if bool_from_f(f):
        return from_len_pre_f(f)
    else:
        return None

def bool_to_f(b:bool, f:io.IOBase) -> int:
    return int_to_f(1 if b else 0, f, blen=1)

def bool_from_f(f:io.IOBase) -> bool:
    return int_from_f(f, blen=1) == 1

def strs_to_f(seq:Collection[str], f:io.IOBase) -> int:
    bytes_written = 0
    bytes_written += size_to_f(len(seq), f)
    for s in seq:
        bytes_written += to_len_pre_f(s, f)
    return bytes_written

def strs_from_f(f:io.IOBase) -> list[str]:
    count = size_from_f(f)
    seq = []
    for i in range(count):
        seq.append(from_len_pre_f(f))
    return seq

def fancy_dict_to_f(d:Mapping[K, V], f:io.IOBase, s_k:Callable[[K, io.IOBase], int], s_v:Callable[[V, io.IOBase], int]) -> int:
    bytes_written = 0
    bytes_written += size_to_f(len(d), f)
    for k,v in d.items():
        bytes_written += s_k(k, f)
        bytes_written += s_v(v, f)
    return bytes_written

def fancy_dict_from_f(f:io.IOBase, s_k:Callable[[io.IOBase], K], s_v:Callable[[io.IOBase], V]) -> dict[K, V]:
    ret:dict[K, V] = {}
    count = size_from_f(f)
    for i in range(count):
        k = s_k(f)
        v = s_v(f)
        ret[k] = v
    return ret

def debug_string_w(s:str, f:io.IOBase) -> int:
    return to_len_pre_f(s, f)

def debug_string_r(s:str, f:io.IOBase) -> str:
    f_pos_start = f.tell()
    s_actual = from_len_pre_f(f)
    if s != s_actual:
        raise ValueError(f'expected section "{s}" at {f_pos_start}, found "{s_actual}"')
    return s_actual

def random_state_to_f(r:np.random.Generator, f:io.IOBase) -> int:
    # we assume this is a PCG64
    state = r.bit_generator.state
    s = json.dumps(state)
    return to_len_pre_f(s, f)

def random_state_from_f(f:io.IOBase) -> dict:
    s = from_len_pre_f(f)
    return json.loads(s)
