'''
The quadra object to graph resource mapper.
'''

import sys
if (sys.version_info.major, sys.version_info.minor) < (3, 10):  # pragma: no cover
    raise Exception('quadra is not supported on Python versions < 3.10')

# checking maximum *signed* integer size to determine the interpreter arch
if sys.maxsize < 9223372036854775807:  # pragma: no cover
    raise Exception('quadra is only supported on 64 bit architectures')

from quadra.lib.version import version, verstring
