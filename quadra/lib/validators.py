'''
Attribute validation rules.

Each rule is a function ``func(res, name, valu)`` which returns an error message
string when the value violates the rule (or None).
'''
import logging

import regex

import quadra.exc as q_exc
import quadra.glob as q_glob

import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

emailre = regex.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
urire = regex.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:[^\s]+$')

def isempty(valu):
    if valu is None:
        return True
    if isinstance(valu, (str, list, tuple, dict, set)) and len(valu) == 0:
        return True
    return False

def items(valu):
    '''
    Yield each individual value of a scalar, list or language partitioned value.
    '''
    if valu is None:
        return

    if isinstance(valu, dict):
        for lvals in valu.values():
            yield from items(lvals)
        return

    if isinstance(valu, (list, tuple, set)):
        yield from valu
        return

    yield valu

def _ruleExistence(res, name, valu):
    if isempty(valu):
        return f'{name} is required'

def _ruleList(res, name, valu):
    if valu is not None and not isinstance(valu, (list, dict)):
        return f'{name} value must be a list'

def _ruleNoList(res, name, valu):
    if isinstance(valu, list):
        return f'{name} value must not be a list'

def _ruleType(res, name, valu):
    atyp = res.getSchema().type(name)
    for item in items(valu):
        try:
            atyp.norm(item)
        except q_exc.BadTypeValu as e:
            return f'{name} value {item!r} is not a valid {atyp.name}: {e.get("mesg")}'

def _ruleRange(res, name, valu):

    rklass = res.getSchema().range(name)
    if rklass is None:
        return None

    for item in items(valu):
        if q_terms.isuri(item) or q_terms.isbnode(item):
            continue
        if not isinstance(item, rklass):
            return f'{name} value {item!r} is not an instance of {rklass.__name__}'

def _ruleEmail(res, name, valu):
    for item in items(valu):
        if not isinstance(item, str) or not emailre.match(item):
            return f'{name} value {item!r} is not a valid email'

def _ruleUri(res, name, valu):
    for item in items(valu):
        if q_terms.isuri(item):
            continue
        if not isinstance(item, str) or not urire.match(item):
            return f'{name} value {item!r} is not a valid uri'

def _ruleUnique(res, name, valu):
    '''
    Check that no other persistent resource of the class holds the same value.
    '''
    schema = res.getSchema()

    # the identity attribute is checked by the duplicate identity probe
    if name == schema.namewith or valu is None:
        return None

    atyp = schema.type(name)
    store = q_glob.getStore()

    collection = res.peek(schema.collattr) if schema.collattr else None

    for item in items(valu):
        try:
            norm, info = atyp.norm(item)
        except q_exc.BadTypeValu:
            continue

        filt = {schema.predicate(name, collection): atyp.toTerm(norm)}
        for iden in store.match(schema.uri, filt):
            if iden != res.getIden():
                return f'There is already a persistent resource with {name} `{atyp.repr(norm)}`'

rules = {
    'existence': _ruleExistence,
    'unique': _ruleUnique,
    'list': _ruleList,
    'nolist': _ruleNoList,
    'type': _ruleType,
    'range': _ruleRange,
    'email': _ruleEmail,
    'uri': _ruleUri,
}

def addRule(name, func):
    '''
    Register a named validation rule.

    Args:
        name (str): The rule name used in the ``enforce`` attribute info.
        func (function): A callback ``func(res, name, valu)`` returning an error message or None.
    '''
    if not callable(func):
        raise q_exc.BadArg(mesg=f'Rule {name} must be callable.', name=name)
    rules[name] = func

def enforce(res, name, valu):
    '''
    Run the implicit and declared rules for one attribute.

    Args:
        res (quadra.lib.resource.Resource): The resource being validated.
        name (str): The attribute name.
        valu (obj): The attribute value.

    Returns:
        dict: A rule name to message dictionary, or None if the value is valid.
    '''
    attr = res.getSchema().reqAttr(name)

    ruleset = []
    if valu is not None:
        ruleset.append('list' if attr.islist else 'nolist')
        ruleset.append('type')
        ruleset.append('range')

    for rule in attr.rules:
        if rule not in ruleset:
            ruleset.append(rule)

    errs = {}
    for rule in ruleset:

        func = rules.get(rule)
        if func is None:
            raise q_exc.NoSuchRule(mesg=f'No validation rule named {rule}.', name=rule, attr=name)

        mesg = func(res, name, valu)
        if mesg is not None:
            errs[rule] = mesg

    if errs:
        return errs

    return None
