import decimal
import logging
import datetime

import regex

from rdflib import BNode, Literal, URIRef

import quadra.exc as q_exc
import quadra.common as q_common

import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

class Type:
    '''
    A value type used to normalize attribute values and convert them to rdf terms.
    '''
    _opt_defs = ()

    def __init__(self, name, info, opts):
        '''
        Construct a new Type object.

        Args:
            name (str): The name of the type.
            info (dict): The type info (docs etc).
            opts (dict): Options that are specific to the type.
        '''
        self.name = name
        self.info = info

        self.opts = dict(self._opt_defs)
        self.opts.update(opts)

        self._type_norms = {}   # python type to norm function map str: _norm_str

        self.setNormFunc(Literal, self._normRdfLiteral)

        self.postTypeInit()

        self.typehash = q_common.guid((self.__class__.__qualname__, self.name, sorted(self.opts.items())))

    def setNormFunc(self, typo, func):
        '''
        Register a normalizer function for a given python type.

        Args:
            typo (type): A python type/class to normalize.
            func (function): A callback which normalizes a python value.
        '''
        self._type_norms[typo] = func

    def postTypeInit(self):
        pass

    def norm(self, valu):
        '''
        Normalize the value for a given type.

        Args:
            valu (obj): The value to normalize.

        Returns:
            ((obj,dict)): The normalized valu, info tuple.
        '''
        func = self._type_norms.get(type(valu))
        if func is None:
            raise q_exc.BadTypeValu(name=self.name, mesg='no norm for type: %r.' % (type(valu),))

        return func(valu)

    def _normRdfLiteral(self, valu):
        # a literal loaded from the store is normed by its python value
        pval = valu.toPython()
        if isinstance(pval, Literal):
            raise q_exc.BadTypeValu(name=self.name, valu=str(valu),
                                    mesg=f'Literal datatype is not supported by type {self.name}.')
        return self.norm(pval)

    def repr(self, norm):
        '''
        Return a printable representation for the value.
        '''
        return str(norm)

    def toTerm(self, norm):
        '''
        Convert a normalized value to an rdflib term.
        '''
        return Literal(norm)

    def clone(self, opts):
        '''
        Create a new instance of this type with the specified options.
        '''
        topt = self.opts.copy()
        topt.update(opts)
        return self.__class__(self.name, self.info, topt)

    def __eq__(self, othr):
        if self.name != othr.name:
            return False
        if self.opts != othr.opts:
            return False
        return True

class Str(Type):

    _opt_defs = (
        ('enums', None),  # type: ignore
        ('regex', None),
        ('lower', False),
        ('strip', False),
    )

    def postTypeInit(self):

        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(int, self._normPyInt)
        self.setNormFunc(float, self._normPyFloat)
        self.setNormFunc(Literal, self._normLangLiteral)

        self.regex = None
        restr = self.opts.get('regex')
        if restr is not None:
            self.regex = regex.compile(restr)

        self.envals = None
        enumstr = self.opts.get('enums')
        if enumstr is not None:
            self.envals = enumstr.split(',')

    def _normLangLiteral(self, valu):
        # language tagged strings are kept as literals to retain the tag
        if valu.language:
            self._checkText(str(valu))
            return valu, {'lang': valu.language}
        return self._normPyStr(str(valu))

    def _normPyInt(self, valu):
        return self._normPyStr(str(valu))

    def _normPyFloat(self, valu):
        deci = decimal.Decimal(str(valu))
        return self._normPyStr(format(deci, 'f'))

    def _normPyStr(self, valu):

        norm = str(valu)

        if self.opts.get('strip'):
            norm = norm.strip()

        if self.opts.get('lower'):
            norm = norm.lower()

        self._checkText(norm)
        return norm, {}

    def _checkText(self, text):

        if self.envals is not None and text not in self.envals:
            raise q_exc.BadTypeValu(valu=text, name=self.name, enums=self.opts.get('enums'),
                                    mesg='Value not in enums')

        if self.regex is not None and not self.regex.match(text):
            raise q_exc.BadTypeValu(valu=text, name=self.name, regx=self.regex.pattern,
                                    mesg=f'Value does not match regex {self.regex.pattern}')

    def repr(self, norm):
        return str(norm)

    def toTerm(self, norm):
        if isinstance(norm, Literal):
            return norm
        return Literal(norm)

class Int(Type):

    _opt_defs = (
        ('min', None),  # Set to a value to enforce minimum value for the type.
        ('max', None),  # Set to a value to enforce maximum value for the type.
    )

    def postTypeInit(self):
        self.minval = self.opts.get('min')
        self.maxval = self.opts.get('max')

        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(int, self._normPyInt)
        self.setNormFunc(bool, self._normPyInt)
        self.setNormFunc(float, self._normPyFloat)

    def _normPyStr(self, valu):
        try:
            valu = int(valu.strip())
        except ValueError as e:
            raise q_exc.BadTypeValu(valu=valu, name=self.name, mesg=str(e)) from None
        return self._normPyInt(valu)

    def _normPyFloat(self, valu):
        if not valu.is_integer():
            raise q_exc.BadTypeValu(valu=valu, name=self.name, mesg='Float is not an integer value.')
        return self._normPyInt(int(valu))

    def _normPyInt(self, valu):

        valu = int(valu)

        if self.minval is not None and valu < self.minval:
            mesg = f'value is below min={self.minval}'
            raise q_exc.BadTypeValu(valu=repr(valu), name=self.name, mesg=mesg)

        if self.maxval is not None and valu > self.maxval:
            mesg = f'value is above max={self.maxval}'
            raise q_exc.BadTypeValu(valu=repr(valu), name=self.name, mesg=mesg)

        return valu, {}

class Float(Type):

    def postTypeInit(self):
        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(int, self._normPyFloat)
        self.setNormFunc(float, self._normPyFloat)
        self.setNormFunc(decimal.Decimal, self._normPyFloat)

    def _normPyStr(self, valu):
        try:
            valu = float(valu.strip())
        except ValueError:
            raise q_exc.BadTypeValu(valu=valu, name=self.name, mesg='Invalid float string.') from None
        return self._normPyFloat(valu)

    def _normPyFloat(self, valu):
        return float(valu), {}

class Bool(Type):

    def postTypeInit(self):
        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(int, self._normPyInt)
        self.setNormFunc(bool, self._normPyInt)

    def _normPyStr(self, valu):

        sval = valu.lower().strip()
        if sval in ('true', 't', 'y', 'yes', 'on', '1'):
            return True, {}

        if sval in ('false', 'f', 'n', 'no', 'off', '0'):
            return False, {}

        raise q_exc.BadTypeValu(name=self.name, valu=valu,
                                mesg='Failed to norm bool')

    def _normPyInt(self, valu):
        return bool(valu), {}

    def repr(self, valu):
        return repr(bool(valu)).lower()

class Time(Type):
    '''
    Timestamps are normalized to timezone aware datetime objects.
    '''
    def postTypeInit(self):
        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(int, self._normPyInt)
        self.setNormFunc(datetime.datetime, self._normPyDatetime)
        self.setNormFunc(datetime.date, self._normPyDate)

    def _normPyStr(self, valu):
        text = valu.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dtime = datetime.datetime.fromisoformat(text)
        except ValueError:
            raise q_exc.BadTypeValu(valu=valu, name=self.name, mesg='Invalid ISO-8601 time string.') from None
        return self._normPyDatetime(dtime)

    def _normPyInt(self, valu):
        # epoch millis
        dtime = datetime.datetime.fromtimestamp(valu / 1000, tz=datetime.timezone.utc)
        return dtime, {}

    def _normPyDate(self, valu):
        return self._normPyDatetime(datetime.datetime(valu.year, valu.month, valu.day))

    def _normPyDatetime(self, valu):
        if valu.tzinfo is None:
            valu = valu.replace(tzinfo=datetime.timezone.utc)
        return valu, {}

    def repr(self, norm):
        return norm.isoformat()

class Uri(Type):

    def postTypeInit(self):
        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(URIRef, self._normPyUri)

    def _normPyStr(self, valu):
        return q_terms.uri(valu), {}

    def _normPyUri(self, valu):
        return valu, {}

    def toTerm(self, norm):
        return norm

class Ref(Type):
    '''
    A reference to another resource (or an anonymous blank node structure).
    '''
    def postTypeInit(self):
        self.setNormFunc(str, self._normPyStr)
        self.setNormFunc(URIRef, self._normPyUri)
        self.setNormFunc(BNode, self._normPyUri)

    def norm(self, valu):
        # resources are normed by duck typing to avoid an import cycle
        if callable(getattr(valu, 'getSchema', None)):
            return valu, {}
        return Type.norm(self, valu)

    def _normPyStr(self, valu):
        return q_terms.uri(valu), {}

    def _normPyUri(self, valu):
        return valu, {}

    def repr(self, norm):
        if hasattr(norm, 'getSchema'):
            return str(norm.id)
        return str(norm)

    def toTerm(self, norm):
        if hasattr(norm, 'getSchema'):
            return q_terms.uri(norm.id)
        return norm

class Lit(Type):
    '''
    An rdf literal of any datatype (including language tagged strings).
    '''
    def postTypeInit(self):
        self.setNormFunc(Literal, self._normLiteral)
        self.setNormFunc(str, self._normPyValu)
        self.setNormFunc(int, self._normPyValu)
        self.setNormFunc(float, self._normPyValu)
        self.setNormFunc(bool, self._normPyValu)

    def _normLiteral(self, valu):
        return valu, {}

    def _normPyValu(self, valu):
        return Literal(valu), {}

    def toTerm(self, norm):
        return norm

ctors = {
    'str': Str,
    'int': Int,
    'float': Float,
    'bool': Bool,
    'time': Time,
    'uri': Uri,
    'ref': Ref,
    'literal': Lit,
}

def getType(typedef):
    '''
    Construct a Type from a (name, opts) type definition.

    Args:
        typedef ((str, dict)): The type name and its options.

    Returns:
        Type: The type instance.
    '''
    name, opts = typedef

    ctor = ctors.get(name)
    if ctor is None:
        raise q_exc.ConfigurationError(mesg=f'No type named {name}.', name=name)

    return ctor(name, {}, opts)
