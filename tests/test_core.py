"""Unit tests for bagging core abstractions.

This test suite validates BootstrapSampler, aggregation, BaggingEnsemble
and out-of-bag evaluation.
"""

import unittest
import sys
import logging
from pathlib import Path
import numpy as np
import pandas as pd
from sklearn.linear_model import RidgeClassifier
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bagging.core import (
    BaggingEnsemble, BootstrapSampler, EnsembleMember, FeatureSchema, MajorityLearner,
    MeanLearner, SklearnLearner, out_of_bag_indices, out_of_bag_predictions,
    out_of_bag_error, oob_error_curve, plurality_vote, mean_prediction, mean_probability
)
from bagging.core.learners import BaseLearner, supports_proba
from bagging.data import make_noisy_classification, make_noisy_regression
from bagging.errors import (
    ConfigurationError, EmptyEnsembleError, InsufficientOOBCoverageError, SchemaMismatchError
)
from bagging.tracking import setup_logger
from bagging.training import train


QUIET = setup_logger('bagging.tests', level=logging.WARNING)


class FixedDrawSampler(BootstrapSampler):
    """Sampler returning predetermined bootstrap draws."""

    def __init__(self, draws):
        super().__init__(random_state=0)
        self.draws = draws

    def sample_indices(self, iteration, n_samples):
        return np.asarray(self.draws[iteration])


class MembershipLearner:
    """Predicts 1.0 for rows whose id was in its training sample, else 0.0.

    The single feature is the row id.
    """

    def fit(self, X, y):
        return set(np.asarray(X)[:, 0].astype(int).tolist())

    def predict(self, model, X):
        ids = np.asarray(X)[:, 0].astype(int)
        return np.array([1.0 if i in model else 0.0 for i in ids])


class TestBootstrapSampler(unittest.TestCase):
    """Test BootstrapSampler functionality."""

    def test_draw_length_and_range(self):
        """Test every draw has N indices in [0, N)."""
        sampler = BootstrapSampler(random_state=42)
        for n_samples in (1, 2, 17, 500):
            for iteration in range(5):
                indices, oob = sampler.draw(iteration, n_samples)

                self.assertEqual(len(indices), n_samples)
                self.assertTrue(np.all(indices >= 0))
                self.assertTrue(np.all(indices < n_samples))

    def test_oob_is_complement_of_draw(self):
        """Test the OOB set is exactly the rows never drawn."""
        sampler = BootstrapSampler(random_state=3)
        indices, oob = sampler.draw(0, 50)

        self.assertEqual(set(oob.tolist()), set(range(50)) - set(indices.tolist()))
        self.assertTrue(np.all(np.diff(oob) > 0))

    def test_single_example_has_empty_oob(self):
        """Test N=1 always draws the only row."""
        indices, oob = BootstrapSampler(random_state=0).draw(0, 1)

        np.testing.assert_array_equal(indices, [0])
        self.assertEqual(len(oob), 0)

    def test_reproducible(self):
        """Test the same seed and iteration give the same draw."""
        first = BootstrapSampler(random_state=42).sample_indices(4, 100)
        second = BootstrapSampler(random_state=42).sample_indices(4, 100)

        np.testing.assert_array_equal(first, second)

    def test_draw_order_independent(self):
        """Test a draw does not depend on which draws were made before it."""
        sampler = BootstrapSampler(random_state=42)
        forward = [sampler.sample_indices(i, 30) for i in range(4)]
        backward = [sampler.sample_indices(i, 30) for i in reversed(range(4))][::-1]

        for a, b in zip(forward, backward):
            np.testing.assert_array_equal(a, b)

    def test_iterations_differ(self):
        """Test different iterations get different draws."""
        sampler = BootstrapSampler(random_state=42)

        self.assertFalse(np.array_equal(sampler.sample_indices(0, 100),
                                        sampler.sample_indices(1, 100)))

    def test_unseeded_sampler_is_stable(self):
        """Test an unseeded sampler fixes its entropy at construction."""
        sampler = BootstrapSampler()

        np.testing.assert_array_equal(sampler.sample_indices(0, 20), sampler.sample_indices(0, 20))

    def test_oob_fraction_near_expected(self):
        """Test the mean OOB fraction approaches (1 - 1/N)^N."""
        sampler = BootstrapSampler(random_state=1)
        n_samples = 1000
        fractions = [len(sampler.draw(i, n_samples)[1]) / n_samples for i in range(50)]
        expected = sampler.get_sample_info(n_samples)['expected_oob_fraction']

        self.assertAlmostEqual(np.mean(fractions), expected, delta=0.01)

    def test_invalid_arguments(self):
        """Test empty training sets and negative iterations are rejected."""
        sampler = BootstrapSampler(random_state=0)

        with self.assertRaises(ValueError):
            sampler.draw(0, 0)
        with self.assertRaises(ValueError):
            sampler.draw(-1, 10)

    def test_out_of_bag_indices(self):
        """Test OOB helper on a literal draw."""
        np.testing.assert_array_equal(out_of_bag_indices(np.array([1, 1, 3, 0]), 4), [2])


class TestAggregation(unittest.TestCase):
    """Test prediction aggregation."""

    def test_mean_prediction(self):
        """Test regression aggregation is the arithmetic mean."""
        preds = np.array([[1.0, 2.0], [3.0, 6.0]])

        np.testing.assert_allclose(mean_prediction(preds), [2.0, 4.0])

    def test_plurality_vote(self):
        """Test the most frequent label wins."""
        preds = np.array([[0, 2], [1, 2], [1, 0]])

        np.testing.assert_array_equal(plurality_vote(preds, np.array([0, 1, 2])), [1, 2])

    def test_tie_goes_to_lowest_label(self):
        """Test equal vote counts resolve to the lowest class label."""
        preds = np.array([['b', 'c'], ['a', 'b']])
        classes = np.array(['a', 'b', 'c'])

        np.testing.assert_array_equal(plurality_vote(preds, classes), ['a', 'b'])

    def test_member_order_does_not_matter(self):
        """Test aggregation is invariant to permuting members."""
        rng = np.random.default_rng(0)
        labels = rng.integers(0, 3, size=(9, 40))
        values = rng.normal(size=(9, 40))
        classes = np.array([0, 1, 2])

        for _ in range(5):
            order = rng.permutation(9)
            np.testing.assert_array_equal(plurality_vote(labels[order], classes),
                                          plurality_vote(labels, classes))
            np.testing.assert_allclose(mean_prediction(values[order]), mean_prediction(values))

    def test_mean_probability_aligns_classes(self):
        """Test members that saw fewer classes get zero probability elsewhere."""
        classes = np.array([0, 1, 2])
        probas = [np.array([[0.2, 0.8]]), np.array([[0.5, 0.25, 0.25]])]
        member_classes = [np.array([1, 2]), classes]

        np.testing.assert_allclose(
            mean_probability(probas, member_classes, classes),
            [[0.25, 0.225, 0.525]]
        )

    def test_unknown_label_rejected(self):
        """Test labels outside the class list raise ValueError."""
        with self.assertRaises(ValueError):
            plurality_vote(np.array([[0, 5]]), np.array([0, 1]))

    def test_empty_predictions_rejected(self):
        """Test aggregation needs at least one member."""
        with self.assertRaises(ValueError):
            mean_prediction(np.empty((0, 3)))


class TestLearners(unittest.TestCase):
    """Test the base learner capability."""

    def test_protocol(self):
        """Test shipped learners satisfy the capability interface."""
        for learner in (MeanLearner(), MajorityLearner(), SklearnLearner(DecisionTreeRegressor())):
            self.assertIsInstance(learner, BaseLearner)

    def test_supports_proba(self):
        """Test probability support detection."""
        self.assertTrue(supports_proba(SklearnLearner(DecisionTreeClassifier())))
        self.assertTrue(supports_proba(MajorityLearner()))
        self.assertFalse(supports_proba(MeanLearner()))

    def test_sklearn_learner_clones(self):
        """Test fitting never mutates the wrapped estimator."""
        estimator = DecisionTreeRegressor(random_state=0)
        learner = SklearnLearner(estimator)
        model = learner.fit(np.arange(10).reshape(-1, 1), np.arange(10.0))

        self.assertIsNot(model, estimator)
        self.assertFalse(hasattr(estimator, 'tree_'))
        self.assertEqual(learner.predict(model, [[3]]).shape, (1,))

    def test_majority_tie(self):
        """Test MajorityLearner breaks ties toward the lowest label."""
        model = MajorityLearner().fit(None, np.array([2, 1, 2, 1]))

        self.assertEqual(model, 1)

    def test_proba_support_follows_estimator(self):
        """Test estimators without predict_proba cannot be used for soft voting."""
        self.assertFalse(supports_proba(SklearnLearner(RidgeClassifier())))
        self.assertFalse(SklearnLearner(RidgeClassifier()).has_proba)

    def test_seeded_fit(self):
        """Test seeded learners apply the given random_state to their clone."""
        X = np.arange(20).reshape(-1, 1)
        y = np.arange(20.0)
        seeded = SklearnLearner(DecisionTreeRegressor(), seed_estimator=True)
        unseeded = SklearnLearner(DecisionTreeRegressor())

        self.assertEqual(seeded.fit(X, y, random_state=123).random_state, 123)
        self.assertIsNone(seeded.estimator.random_state)
        self.assertIsNone(unseeded.fit(X, y, random_state=123).random_state)



class TestBaggingEnsemble(unittest.TestCase):
    """Test the fitted ensemble."""

    def setUp(self):
        """Set up a small fitted ensemble."""
        self.X, self.y = make_noisy_regression(n_samples=120, random_state=0)
        self.ensemble = train(
            self.X, self.y,
            n_estimators=10,
            learner=SklearnLearner(DecisionTreeRegressor(random_state=0)),
            random_state=42,
            logger=QUIET
        )

    def test_member_count(self):
        """Test the ensemble has exactly B members in iteration order."""
        self.assertEqual(len(self.ensemble), 10)
        self.assertEqual([m.iteration for m in self.ensemble], list(range(10)))
        self.assertEqual(len(self.ensemble.models), 10)

    def test_predict_is_member_mean(self):
        """Test regression prediction averages member predictions."""
        X_new = self.X.iloc[:5]
        per_member = self.ensemble.member_predictions(X_new)

        self.assertEqual(per_member.shape, (10, 5))
        np.testing.assert_allclose(self.ensemble.predict(X_new), per_member.mean(axis=0))

    def test_predict_one(self):
        """Test single feature vectors give scalars."""
        row = self.X.iloc[3]
        value = self.ensemble.predict_one(row)

        self.assertIsInstance(value, float)
        self.assertAlmostEqual(value, self.ensemble.predict(self.X.iloc[[3]])[0])
        self.assertAlmostEqual(self.ensemble.predict_one(row.to_numpy()), value)

    def test_reordered_columns(self):
        """Test DataFrame columns are matched by name."""
        X_new = self.X.iloc[:5]
        shuffled = X_new[list(reversed(X_new.columns))]

        np.testing.assert_allclose(self.ensemble.predict(shuffled), self.ensemble.predict(X_new))

    def test_schema_mismatch(self):
        """Test mismatched features raise SchemaMismatchError."""
        with self.assertRaises(SchemaMismatchError):
            self.ensemble.predict(self.X.iloc[:5, :3])
        with self.assertRaises(SchemaMismatchError):
            self.ensemble.predict(self.X.iloc[:5].rename(columns={'feature_0': 'other'}))
        with self.assertRaises(SchemaMismatchError):
            self.ensemble.predict(np.zeros((2, 7)))

        text = self.X.iloc[:2].copy()
        text['feature_1'] = ['a', 'b']
        with self.assertRaises(SchemaMismatchError):
            self.ensemble.predict(text)

    def test_head(self):
        """Test head keeps the first members only."""
        head = self.ensemble.head(3)

        self.assertEqual(len(head), 3)
        self.assertEqual(len(self.ensemble), 10)
        self.assertIs(head.members[0], self.ensemble.members[0])

    def test_members_immutable(self):
        """Test the ensemble's member sequence cannot be reassigned."""
        self.assertIsInstance(self.ensemble.members, tuple)
        with self.assertRaises(AttributeError):
            self.ensemble.members = ()

    def test_oob_indices_read_only(self):
        """Test member OOB sets cannot be modified in place."""
        member = self.ensemble.members[0]

        self.assertFalse(member.oob_indices.flags.writeable)
        with self.assertRaises(ValueError):
            member.oob_indices[0] = 0

    def test_metadata_not_shared(self):
        """Test derived ensembles do not share the metadata dict."""
        head = self.ensemble.head(2)
        head.metadata['note'] = 'changed'

        self.assertNotIn('note', self.ensemble.metadata)
        self.assertIn('training_time_sec', self.ensemble.metadata)


    def test_info_and_summary(self):
        """Test ensemble statistics."""
        info = self.ensemble.get_ensemble_info()

        self.assertEqual(info['n_estimators'], 10)
        self.assertAlmostEqual(info['mean_unique_fraction'] + info['mean_oob_fraction'], 1.0)
        self.assertIn("Bagging Ensemble Summary", self.ensemble.summary())

    def test_empty_ensemble(self):
        """Test an ensemble with B=0 refuses to predict."""
        empty = train(self.X, self.y, n_estimators=0, learner=MeanLearner(), logger=QUIET)

        self.assertEqual(len(empty), 0)
        with self.assertRaises(EmptyEnsembleError):
            empty.predict(self.X.iloc[:2])
        with self.assertRaises(ConfigurationError):
            empty.predict_one(self.X.iloc[0])

    def test_regression_has_no_proba(self):
        """Test predict_proba is classification only."""
        with self.assertRaises(ConfigurationError):
            self.ensemble.predict_proba(self.X.iloc[:2])

    def test_classification_needs_classes(self):
        """Test classification ensembles require class labels."""
        with self.assertRaises(ConfigurationError):
            BaggingEnsemble(
                members=(), learner=MajorityLearner(), task='classification',
                schema=FeatureSchema(n_features=1), n_samples=1
            )

    def test_soft_voting_needs_proba(self):
        """Test soft voting is rejected for learners without predict_proba."""
        with self.assertRaises(ConfigurationError):
            BaggingEnsemble(
                members=(), learner=MeanLearner(), task='classification',
                schema=FeatureSchema(n_features=1), n_samples=1,
                classes=np.array([0, 1]), voting='soft'
            )


class TestClassificationEnsemble(unittest.TestCase):
    """Test hard and soft voting ensembles."""

    def setUp(self):
        """Set up classification data."""
        self.X, self.y = make_noisy_classification(n_samples=200, n_classes=3, random_state=1)
        self.learner = SklearnLearner(DecisionTreeClassifier(max_depth=3, random_state=0))

    def _train(self, voting):
        return train(self.X, self.y, n_estimators=15, learner=self.learner, random_state=5,
                     task='classification', voting=voting, logger=QUIET)

    def test_hard_voting(self):
        """Test hard voting matches a plurality vote over members."""
        ensemble = self._train('hard')
        X_new = self.X.iloc[:20]
        expected = plurality_vote(ensemble.member_predictions(X_new), ensemble.classes)

        np.testing.assert_array_equal(ensemble.predict(X_new), expected)
        np.testing.assert_allclose(ensemble.predict_proba(X_new).sum(axis=1), 1.0)

    def test_soft_voting(self):
        """Test soft voting picks the argmax of the mean probability."""
        ensemble = self._train('soft')
        X_new = self.X.iloc[:20]
        proba = ensemble.predict_proba(X_new)

        self.assertEqual(proba.shape, (20, 3))
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)
        np.testing.assert_array_equal(ensemble.predict(X_new),
                                      ensemble.classes[np.argmax(proba, axis=1)])

    def test_string_labels(self):
        """Test non-numeric class labels are supported."""
        y = self.y.map({0: 'low', 1: 'mid', 2: 'high'})
        ensemble = train(self.X, y, n_estimators=5, learner=MajorityLearner(), random_state=0,
                         task='classification', logger=QUIET)

        self.assertEqual(list(ensemble.classes), ['high', 'low', 'mid'])
        self.assertIn(ensemble.predict_one(self.X.iloc[0]), ['high', 'low', 'mid'])


class TestOutOfBag(unittest.TestCase):
    """Test out-of-bag evaluation."""

    def test_literal_scenario(self):
        """Test OOB error on four examples with a fixed draw and a mean predictor."""
        X = np.array([[1], [2], [3], [4]])
        y = np.array([10.0, 20.0, 30.0, 40.0])
        # 0-based draw: rows 0, 1 and 3 are drawn, row 2 (feature [3]) is out-of-bag
        ensemble = train(X, y, n_estimators=1, learner=MeanLearner(),
                         sampler=FixedDrawSampler([[1, 1, 3, 0]]), logger=QUIET)

        member = ensemble.members[0]
        np.testing.assert_array_equal(member.oob_indices, [2])
        self.assertEqual(member.model, 22.5)

        oob = out_of_bag_predictions(ensemble, X)
        np.testing.assert_array_equal(oob.n_learners, [0, 0, 1, 0])
        self.assertEqual(oob.predictions[2], 22.5)
        self.assertEqual(oob.coverage, 0.25)
        self.assertAlmostEqual(out_of_bag_error(ensemble, X, y), (30.0 - 22.5) ** 2)

    def test_in_bag_members_excluded(self):
        """Test no row's OOB prediction uses a member that trained on it."""
        n_samples = 60
        X = np.arange(n_samples).reshape(-1, 1)
        y = np.zeros(n_samples)
        ensemble = train(X, y, n_estimators=25, learner=MembershipLearner(),
                         random_state=11, logger=QUIET)

        oob = out_of_bag_predictions(ensemble, X)
        covered = oob.covered
        self.assertTrue(covered.any())
        np.testing.assert_array_equal(oob.predictions[covered].astype(float), 0.0)

        expected_counts = np.zeros(n_samples, dtype=int)
        for member in ensemble:
            expected_counts[member.oob_indices] += 1
        np.testing.assert_array_equal(oob.n_learners, expected_counts)
        self.assertEqual(out_of_bag_error(ensemble, X, y), 0.0)

    def test_no_coverage(self):
        """Test OOB error without any out-of-bag row raises."""
        X = np.array([[1.0]])
        y = np.array([5.0])
        ensemble = train(X, y, n_estimators=3, learner=MeanLearner(), random_state=0, logger=QUIET)

        with self.assertRaises(InsufficientOOBCoverageError):
            out_of_bag_error(ensemble, X, y)

    def test_zero_estimators_no_coverage(self):
        """Test OOB error of an empty ensemble raises."""
        X, y = make_noisy_regression(n_samples=20)
        ensemble = train(X, y, n_estimators=0, learner=MeanLearner(), logger=QUIET)

        with self.assertRaises(InsufficientOOBCoverageError):
            out_of_bag_error(ensemble, X, y)

    def test_requires_training_rows(self):
        """Test OOB evaluation rejects data that is not the training set."""
        X, y = make_noisy_regression(n_samples=30)
        ensemble = train(X, y, n_estimators=2, learner=MeanLearner(), random_state=0, logger=QUIET)

        with self.assertRaises(SchemaMismatchError):
            out_of_bag_error(ensemble, X.iloc[:10], y.iloc[:10])

    def test_classification_error_range(self):
        """Test OOB mis-classification rate is a rate."""
        X, y = make_noisy_classification(n_samples=150, random_state=2)
        learner = SklearnLearner(DecisionTreeClassifier(random_state=0))
        for voting in ('hard', 'soft'):
            ensemble = train(X, y, n_estimators=20, learner=learner, random_state=3,
                             task='classification', voting=voting, logger=QUIET)
            error = out_of_bag_error(ensemble, X, y)

            self.assertGreaterEqual(error, 0.0)
            self.assertLess(error, 0.5)

    def test_error_curve(self):
        """Test the OOB curve ends at the full-ensemble OOB error."""
        X, y = make_noisy_regression(n_samples=100, random_state=4)
        learner = SklearnLearner(DecisionTreeRegressor(random_state=0))
        ensemble = train(X, y, n_estimators=12, learner=learner, random_state=4, logger=QUIET)
        curve = oob_error_curve(ensemble, X, y)

        self.assertEqual(list(curve.index), list(range(1, 13)))
        self.assertEqual(curve.index.name, 'n_estimators')
        self.assertAlmostEqual(curve.iloc[-1], out_of_bag_error(ensemble, X, y))
        self.assertAlmostEqual(curve.loc[5], out_of_bag_error(ensemble.head(5), X, y))

    def test_curve_uncovered_checkpoint_is_nan(self):
        """Test checkpoints without coverage are NaN."""
        X = np.array([[1], [2], [3], [4]])
        y = np.array([10.0, 20.0, 30.0, 40.0])
        sampler = FixedDrawSampler([[0, 1, 2, 3], [1, 1, 3, 0]])
        ensemble = train(X, y, n_estimators=2, learner=MeanLearner(), sampler=sampler,
                         logger=QUIET)
        curve = oob_error_curve(ensemble, X, y)

        self.assertTrue(np.isnan(curve.loc[1]))
        self.assertAlmostEqual(curve.loc[2], 56.25)

    def test_curve_invalid_checkpoint(self):
        """Test checkpoints outside 1..B are rejected."""
        X, y = make_noisy_regression(n_samples=20)
        ensemble = train(X, y, n_estimators=3, learner=MeanLearner(), random_state=0, logger=QUIET)

        with self.assertRaises(ValueError):
            oob_error_curve(ensemble, X, y, checkpoints=[0, 2])
        with self.assertRaises(ValueError):
            oob_error_curve(ensemble, X, y, checkpoints=[4])


class TestEnsembleMember(unittest.TestCase):
    """Test member bookkeeping."""

    def test_oob_size(self):
        """Test oob_size counts out-of-bag rows."""
        member = EnsembleMember(iteration=0, model=1.0, oob_indices=np.array([2, 5]), n_unique=3)

        self.assertEqual(member.oob_size, 2)


if __name__ == '__main__':
    unittest.main(verbosity=2)
