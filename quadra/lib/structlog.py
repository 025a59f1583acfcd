'''
JSON lines logging for resource persistence events.
'''
import logging

import msgspec.json as m_json

import quadra.common as q_common

_cb = lambda x: q_common.trimText(repr(x))

# extra keys which describe the resource an event is about
resource_keys = ('class', 'iden', 'graph')

class JsonFormatter(logging.Formatter):
    '''
    Format log records as single line JSON documents.

    Values passed as ``extra={'quadra': {...}}`` are added to the document.
    The class, iden and graph of the resource are grouped under ``resource``
    and the other values are merged into the top level without replacing
    the standard keys.
    '''
    def format(self, record: logging.LogRecord):

        record.message = record.getMessage()
        ret = {
            'message': self.formatMessage(record),
            'level': record.levelname,
            'time': self.formatTime(record, self.datefmt),
            'logger': {
                'name': record.name,
                'func': record.funcName,
                'lineno': record.lineno,
            },
        }

        extras = record.__dict__.get('quadra')
        if extras:

            rctx = {k: str(extras[k]) for k in resource_keys if extras.get(k) is not None}
            if rctx:
                ret['resource'] = rctx

            for name, valu in extras.items():
                if name in resource_keys or name in ret:
                    continue
                ret[name] = valu

        if record.exc_info:
            name, info = q_common.err(record.exc_info[1], fulltb=True)
            info['errname'] = name
            ret['err'] = info

        return m_json.encode(ret, enc_hook=_cb).decode()
