from selectolax.parser import HTMLParser

# Elements whose contents are never rendered as text
INVISIBLE_TAGS = ['script', 'style', 'noscript', 'template']

def extract_text(html):
    """Return the rendered text of an HTML document, without markup."""
    tree = HTMLParser(html)
    tree.strip_tags(INVISIBLE_TAGS)

    root = tree.root
    if root is None:
        return ''

    return root.text(separator=' ')

def extract_links(html):
    """Return the href of every link in an HTML document, unresolved."""
    tree = HTMLParser(html)

    rv = []
    for a in tree.css('a'):
        href = a.attributes.get('href')
        if href and href.strip():
            rv.append(href.strip())

    return rv
