"""
BluePrint Insight - template-driven field extraction from technical drawings.

Example:
    >>> from blueprint_insight.domains.extraction import TemplateExtractor
    >>> extractor = TemplateExtractor(get_settings())
    >>> outcome = await extractor.extract(document, template.fields, config)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
