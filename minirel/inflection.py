"""Naming conventions used to infer table names, target classes and foreign keys."""
import re

IRREGULAR = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
}
SINGULAR_IRREGULAR = {plural: singular for singular, plural in IRREGULAR.items()}


def underscore(name):
    """'BookReview' -> 'book_review'"""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def camelize(name):
    """'book_review' -> 'BookReview'"""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def pluralize(word):
    head, _, last = word.rpartition("_")
    prefix = f"{head}_" if head else ""
    if last in IRREGULAR:
        return prefix + IRREGULAR[last]
    if re.search(r"[^aeiou]y$", last):
        return prefix + last[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", last):
        return prefix + last + "es"
    return prefix + last + "s"


def singularize(word):
    head, _, last = word.rpartition("_")
    prefix = f"{head}_" if head else ""
    if last in SINGULAR_IRREGULAR:
        return prefix + SINGULAR_IRREGULAR[last]
    if last.endswith("ies"):
        return prefix + last[:-3] + "y"
    if re.search(r"(x|ch|sh|ss|zz)es$", last):
        return prefix + last[:-2]
    if last.endswith("s") and not last.endswith("ss"):
        return prefix + last[:-1]
    return prefix + last


def tableize(class_name):
    return pluralize(underscore(class_name))


def classify(association_name):
    """'books' -> 'Book', 'author' -> 'Author'"""
    return camelize(singularize(association_name))


def foreign_key(name):
    """'Author' or 'author' -> 'author_id'"""
    return f"{underscore(name)}_id"
