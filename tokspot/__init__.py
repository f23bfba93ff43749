"""
tokspot - token-level entity spotting.

Gazetteer and pattern spotters annotate spans of a tokenized document with
entity types; a neuralyzer corrects those annotations once every other
recognizer has run. Recognizers can be built in code or loaded from a rules
file written in the spot DSL.
"""
