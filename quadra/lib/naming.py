'''
Identifier generation for resources.

A resource class picks its naming strategy with the ``namewith`` key of its modeldef:

* ``'id'`` - the identifier must be assigned by the caller.
* an attribute name - the identifier is derived from the value of that attribute.
* a callable - the identifier is computed by calling it with the resource.
'''
import logging
import urllib.parse

import regex

import quadra.exc as q_exc
import quadra.common as q_common

import quadra.lib.cache as q_cache
import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

wsre = regex.compile(r'\s+')

def genid(res):
    '''
    Generate the identifier for a resource according to its naming strategy.

    Args:
        res (quadra.lib.resource.Resource): The resource to name.

    Returns:
        URIRef: The generated identifier.

    Raises:
        IDGenerationFailure: If the identifier cannot be derived.
    '''
    schema = res.getSchema()
    namewith = schema.namewith

    if namewith is None:
        raise q_exc.IDGenerationFailure(mesg=f'No naming strategy is configured for {schema.name}.')

    if namewith == 'id':
        raise q_exc.IDGenerationFailure(mesg='id must be set if configured in namewith')

    if callable(namewith):
        try:
            valu = namewith(res)
        except q_exc.IDGenerationFailure:
            raise
        except Exception as e:
            raise q_exc.IDGenerationFailure(mesg=f'Problem with custom id generation: {e}') from e

        if valu is None:
            raise q_exc.IDGenerationFailure(mesg='Custom id generation returned no value.')

        try:
            return q_terms.uri(valu)
        except q_exc.BadTypeValu as e:
            raise q_exc.IDGenerationFailure(mesg=f'Problem with custom id generation: {e.get("mesg")}') from e

    valu = res.peek(namewith)
    if valu is None:
        mesg = f'Attribute {namewith} is not set, it is required to generate the id.'
        raise q_exc.IDGenerationFailure(mesg=mesg, name=namewith)

    if isinstance(valu, (list, tuple, dict)):
        mesg = f'Attribute {namewith} must hold a single value to generate the id.'
        raise q_exc.IDGenerationFailure(mesg=mesg, name=namewith)

    return idFromUnique(schema, namewith, valu)

def idFromUnique(schema, name, valu):
    '''
    Build the canonical identifier for a value of the identity attribute.

    The value is normalized by the attribute type, whitespace is collapsed and
    the text is url quoted beneath the class uri.

    Examples:

        Find the person named "Ada Lovelace"::

            iden = idFromUnique(Person.getSchema(), 'name', 'Ada Lovelace')
            # http://quadra.local/person/Ada%20Lovelace
    '''
    atyp = schema.type(name)

    try:
        norm, info = atyp.norm(valu)
    except q_exc.BadTypeValu as e:
        raise q_exc.IDGenerationFailure(mesg=f'Invalid value for {name}: {e.get("mesg")}', name=name) from e

    text = wsre.sub(' ', atyp.repr(norm).strip())
    if not text:
        raise q_exc.IDGenerationFailure(mesg=f'Attribute {name} is empty, it is required to generate the id.',
                                        name=name)

    return q_terms.join(schema.uri, quote(text))

@q_cache.memoize()
def quote(text):
    return urllib.parse.quote(text, safe='')

def guidNamer(*names):
    '''
    Return a naming function which derives a stable guid from attribute values.

    Examples:

        modeldef = {
            'name': 'tag',
            'namewith': guidNamer('label', 'owner'),
            ...
        }
    '''
    def namer(res):
        valus = []
        for name in names:
            valu = res.peek(name)
            if valu is None:
                raise q_exc.IDGenerationFailure(mesg=f'Attribute {name} is not set, it is required to generate the id.',
                                                name=name)
            atyp = res.getSchema().type(name)
            try:
                norm, info = atyp.norm(valu)
            except q_exc.BadTypeValu as e:
                raise q_exc.IDGenerationFailure(mesg=f'Invalid value for {name}: {e.get("mesg")}', name=name) from e

            valus.append(atyp.repr(norm))

        return q_terms.join(res.getSchema().uri, q_common.guid(tuple(valus)))

    return namer
