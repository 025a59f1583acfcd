'''
Exceptions used by quadra, all inheriting from QuadErr
'''

class QuadErr(Exception):

    def __init__(self, *args, **info):
        self.errinfo = info
        self.errname = self.__class__.__name__
        Exception.__init__(self, self._getExcMsg())

    def _getExcMsg(self):
        props = sorted(self.errinfo.items())
        displ = ' '.join(['%s=%r' % (p, v) for (p, v) in props])
        return '%s: %s' % (self.__class__.__name__, displ)

    def _setExcMesg(self):
        '''Should be called when self.errinfo is modified.'''
        self.args = (self._getExcMsg(),)

    def __setstate__(self, state):
        '''Pickle support.'''
        super(QuadErr, self).__setstate__(state)
        self._setExcMesg()

    def items(self):
        return {k: v for k, v in self.errinfo.items()}

    def get(self, name, defv=None):
        '''
        Return a value from the errinfo dict.

        Example:

            try:
                res.save()
            except QuadErr as e:
                errors = e.get('errors')

        '''
        return self.errinfo.get(name, defv)

    def set(self, name, valu):
        '''
        Set a value in the errinfo dict.
        '''
        self.errinfo[name] = valu
        self._setExcMesg()

    def setdefault(self, name, valu):
        '''
        Set a value in errinfo dict if it is not already set.
        '''
        if name in self.errinfo:
            return
        self.errinfo[name] = valu
        self._setExcMesg()

    def update(self, items: dict):
        '''Update multiple items in the errinfo dict at once.'''
        self.errinfo.update(items)
        self._setExcMesg()

class ValidationFailure(QuadErr):
    '''
    A save was attempted on a resource which does not validate.

    The ``errors`` key contains the full attribute error map.
    '''
    pass

class IDGenerationFailure(QuadErr):
    '''
    The identity strategy of a resource class could not produce an id.
    '''
    pass

class IllegalMutation(QuadErr):
    '''
    The requested change is not allowed in the current resource state.
    '''
    pass

class ConfigurationError(QuadErr):
    '''
    The model or runtime configuration does not allow the operation.
    '''
    pass

class StoreOperationFailure(QuadErr):
    '''The graph store client has encountered an error'''
    pass

class NoSuchAttr(QuadErr):

    @classmethod
    def init(cls, klass, name, mesg=None):
        if mesg is None:
            mesg = f'No attribute named {name} on {klass}.'
        return NoSuchAttr(mesg=mesg, klass=klass, name=name)

class AttrNotLoaded(QuadErr):
    '''
    An attribute of a persistent resource was read before it was loaded.
    '''
    pass

class NoSuchRule(QuadErr): pass

class BadArg(QuadErr):
    ''' Improper function arguments '''
    pass

class BadTypeValu(QuadErr): pass
class BadConfValu(QuadErr):
    '''
    The configuration value provided is not valid.

    This should contain the config name, valu and mesg.
    '''
    pass

class NeedConfValu(QuadErr): pass
class SchemaViolation(QuadErr): pass
class NotMsgpackSafe(QuadErr): pass
