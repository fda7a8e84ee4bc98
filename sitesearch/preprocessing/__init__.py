from sitesearch.preprocessing.lemmatizer import Lemmatizer

__all__ = [
	"Lemmatizer",
]
