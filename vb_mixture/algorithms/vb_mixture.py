"""
Variational Bayes Mixture Engine

VBMixture runs coordinate-ascent variational inference for a mixture of
pluggable conjugate components with a Dirichlet-like mixing model. It
supports:
- vb_batch: batch VB-EM iterated to convergence of the negative free energy
- vb_online_update / vb_online: stochastic VB over mini-batches
- vb_nonstationary_update: streaming VB with stabilized forgetting

Every update returns a new VBMixture; the instance it was called on, and
the prior snapshot captured before an update pass, are never modified.

Example usage:
    >>> model = VBMixture.from_template(NormalGammaComponent(), n_components=2,
    ...                                 max_iterations=50, random_state=0)
    >>> model, training = model.vb_batch(X)
    >>> print(f"Converged: {training.converged} after {training.n_iterations} iterations")
"""

import copy
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np
from scipy.special import logsumexp, xlogy
from sklearn.cluster import KMeans
from sklearn.utils import check_random_state
from tqdm import tqdm

from vb_mixture.algorithms.config import VBConfig, check_horizon, check_learning_rate
from vb_mixture.algorithms.learning_rate import create_schedule
from vb_mixture.algorithms.training import KldDetails, TrainingState
from vb_mixture.exceptions import ContractError, InputValidationError, NumericalError
from vb_mixture.models.base import check_weights
from vb_mixture.models.dirichlet import DirichletMixing
from vb_mixture.utils.timing import ResourceMonitor


# Membership split of positive-class samples in the two-class seeding mode.
# Soft and deterministic: every positive row keeps mass outside column 0.
POSITIVE_CLASS_SPLIT = (0.8, 0.2)


class VBMixture:
    """
    Variational Bayes mixture model.

    Attributes:
        components: Tuple of component models (length n_components).
        mixing: Mixing-proportion model.
        config: VBConfig with iteration, convergence and streaming settings.
        observer: Optional callback(model, x, training_snapshot) invoked
                  after batch iterations.
        n_samples: Samples seen by vb_nonstationary_update.
        vb_online_t: Streaming time index of vb_nonstationary_update.

    Example:
        >>> model = VBMixture([NormalGammaComponent(), NormalGammaComponent()])
        >>> model, training = model.vb_batch(X)
        >>> labels = model.predict(X)
    """

    def __init__(
        self,
        components: Sequence[Any],
        mixing: Optional[Any] = None,
        config: Optional[VBConfig] = None,
        observer: Optional[Callable] = None,
        **config_overrides
    ):
        """
        Initialize VBMixture.

        Args:
            components: Component models implementing the component contract.
            mixing: Mixing model (default DirichletMixing()).
            config: Engine configuration (default VBConfig()).
            observer: Optional per-iteration callback.
            **config_overrides: VBConfig fields to override.

        Raises:
            InputValidationError: If components is empty or their
                                  dimensionalities disagree.
        """
        try:
            components = tuple(components)
        except TypeError:
            raise InputValidationError("components must be a sequence of component models")
        if len(components) == 0:
            raise InputValidationError("A mixture needs at least one component")

        dims = {getattr(c, 'n_dimensions', None) for c in components}
        dims.discard(None)
        if len(dims) > 1:
            raise InputValidationError(
                f"All components must have the same dimensionality, got {sorted(dims)}"
            )

        config = config if config is not None else VBConfig()
        if config_overrides:
            config = config.replace(**config_overrides)

        self.components = components
        self.mixing = mixing if mixing is not None else DirichletMixing()
        self.config = config
        self.observer = observer
        self.n_samples = 0
        self.vb_online_t = 0

    @classmethod
    def from_template(
        cls,
        template: Any,
        n_components: int,
        mixing: Optional[Any] = None,
        **kwargs
    ) -> 'VBMixture':
        """Build a mixture of n_components independent copies of template."""
        if n_components < 1:
            raise InputValidationError(f"n_components must be >= 1, got {n_components}")
        components = [copy.deepcopy(template) for _ in range(n_components)]
        return cls(components, mixing=mixing, **kwargs)

    @property
    def n_components(self) -> int:
        return len(self.components)

    @property
    def n_dimensions(self) -> Optional[int]:
        return getattr(self.components[0], 'n_dimensions', None)

    @property
    def mixing_proportions(self) -> np.ndarray:
        """Posterior mean of the mixing proportions."""
        return _attribute(self.mixing, 'posterior_mean')

    # =========================================================================
    # Batch VB
    # =========================================================================

    def vb_batch(
        self,
        x: Any,
        labels: Optional[np.ndarray] = None
    ) -> Tuple['VBMixture', TrainingState]:
        """
        Run batch VB until convergence, failure or max_iterations.

        Args:
            x: Observations, shape (n_samples, n_dimensions).
            labels: Optional binary class labels ((n, 2) one-hot or 0/1
                    vector) selecting the two-class seeding heuristic.

        Returns:
            Tuple of:
                - Posterior VBMixture
                - TrainingState with memberships and NFE history

        Raises:
            InputValidationError: On malformed observations or labels.
            ContractError: If a component lacks a required operation.
        """
        cfg = self.config
        x = parse_input_data(x)
        self._check_dimensions(x)
        rng = check_random_state(cfg.random_state)

        monitor = ResourceMonitor()
        monitor.start()

        model = self.initialize(x)

        if cfg.verbose_text:
            print(f"\n\nVB inference for a mixture model with {self.n_components} components")
            print("\tInitializing VB Mixture Model")

        model, prior, training = model.vb_initialize(x, labels, random_state=rng)

        if cfg.verbose_text:
            print("\tIterating VB Updates")

        converged = False
        err = False
        stopping_reason = 'max_iterations'

        for iteration in range(1, cfg.max_iterations + 1):
            try:
                candidate, training = model.vb_m(prior, x, training)
                candidate, training = candidate.vb_e(prior, x, training)
                nfe, e_log_likelihood, kld, kld_details = candidate.vb_nfe(prior, x, training)
                if not np.isfinite(nfe):
                    raise NumericalError(f"Negative free energy is not finite: {nfe}")
            except NumericalError as e:
                warnings.warn(f"VB iteration {iteration} failed: {e}", RuntimeWarning)
                err = True
                stopping_reason = 'numerical_error'
                break

            model = candidate
            training.record_iteration(iteration, nfe, e_log_likelihood, kld)
            training.kld_details = kld_details
            monitor.sample()

            if cfg.check_convergence and iteration > 1:
                converged, err = model.vb_is_converged(prior, x, training)

            if cfg.verbose_text:
                print(f"\tIteration {iteration}: negative free energy = {nfe:.6f}")

            model._notify(x, training, iteration)

            if converged:
                stopping_reason = 'converged'
                if cfg.verbose_text:
                    print("\tConvergence reached. Change in negative free energy below threshold.")
                break

            if err:
                stopping_reason = 'nfe_decrease'
                break

        if cfg.check_convergence and cfg.verbose_text:
            print("\nAll VB iterations complete.\n")
            if not converged and not err:
                print("\nLearning did not complete in the allotted number of iterations.\n")

        training.converged = converged
        training.err = err
        training.finish(stopping_reason, monitor.stop())

        return model, training

    def fit(self, x: Any, labels: Optional[np.ndarray] = None) -> 'VBMixture':
        """Run vb_batch and return only the posterior model."""
        model, _ = self.vb_batch(x, labels)
        return model

    def initialize(self, x: Any) -> 'VBMixture':
        """Initialize every component from x and the mixing model over K categories."""
        x = parse_input_data(x)
        components = tuple(
            _operation(c, 'initialize')(x) for c in self.components
        )
        mixing = _operation(self.mixing, 'initialize')(np.zeros((1, self.n_components)))

        model = self._replace(components=components, mixing=mixing)
        model._check_dimensions(x)
        return model

    def vb_initialize(
        self,
        x: np.ndarray,
        labels: Optional[np.ndarray] = None,
        random_state: Any = None
    ) -> Tuple['VBMixture', 'VBMixture', TrainingState]:
        """
        Capture the prior snapshot and seed the responsibilities.

        Returns:
            Tuple of (model, prior snapshot, fresh TrainingState).
        """
        training = TrainingState()
        prior = self._prior_snapshot()

        memberships = self.collection_initialize(x, labels, random_state=random_state)
        training.component_memberships = memberships
        training.n_samples_per_component = memberships.sum(axis=0)
        training.variational_log_likelihood_by_sample = np.full(
            (x.shape[0], self.n_components), -np.inf
        )

        return self, prior, training

    def collection_initialize(
        self,
        x: np.ndarray,
        labels: Optional[np.ndarray] = None,
        random_state: Any = None
    ) -> np.ndarray:
        """
        Initial responsibility matrix.

        - Without labels, each sample is assigned to one component drawn
          uniformly (or from k-means when config.init_method == 'kmeans').
        - With binary labels, negative samples go entirely to the first
          component and positive samples are split 80/20 between the first
          two components.

        Args:
            x: Observations, shape (n_samples, n_dimensions).
            labels: Optional binary labels.
            random_state: Seed or RandomState for the draw.

        Returns:
            Responsibilities of shape (n_samples, n_components).
        """
        n = x.shape[0]
        K = self.n_components
        memberships = np.zeros((n, K))

        if labels is not None:
            if K < 2:
                raise InputValidationError(
                    "Two-class initialization requires at least 2 components"
                )
            labels = parse_labels(labels, n)
            negative = labels[:, 0] == 1
            positive = labels[:, 1] == 1

            memberships[negative, 0] = 1.0
            memberships[positive, 0] = POSITIVE_CLASS_SPLIT[0]
            memberships[positive, 1] = POSITIVE_CLASS_SPLIT[1]
            return memberships

        rng = check_random_state(random_state)
        if self.config.init_method == 'kmeans':
            kmeans = KMeans(n_clusters=K, n_init=1, random_state=rng)
            assignments = kmeans.fit_predict(x)
        else:
            assignments = rng.randint(K, size=n)

        memberships[np.arange(n), assignments] = 1.0
        return memberships

    def vb_m(
        self,
        prior: 'VBMixture',
        x: np.ndarray,
        training: TrainingState
    ) -> Tuple['VBMixture', TrainingState]:
        """
        M-step: conjugate update of every component and of the mixing model.
        """
        r = training.component_memberships

        components = self._map_components(
            lambda s: _operation(self.components[s], 'weighted_conjugate_update')(
                prior.components[s], x, r[:, s]
            )
        )

        training.n_samples_per_component = r.sum(axis=0)
        mixing = _operation(self.mixing, 'conjugate_update')(
            prior.mixing, training.n_samples_per_component
        )

        return self._replace(components=components, mixing=mixing), training

    def vb_e(
        self,
        prior: 'VBMixture',
        x: np.ndarray,
        training: TrainingState
    ) -> Tuple['VBMixture', TrainingState]:
        """
        E-step: responsibilities from the current posteriors.

        Raises:
            NumericalError: If a row of log-responsibilities cannot be
                            normalized.
        """
        n = x.shape[0]

        columns = self._map_components(
            lambda s: np.asarray(
                _operation(self.components[s], 'conjugate_variational_average_log_likelihood')(x),
                dtype=float
            ).reshape(-1)
        )
        for s, column in enumerate(columns):
            if column.shape[0] != n:
                raise ContractError(self.components[s], 'conjugate_variational_average_log_likelihood')
        cluster_log_likelihoods = np.column_stack(columns) if n > 0 else np.zeros((0, self.n_components))

        expected_log_mean = np.asarray(_attribute(self.mixing, 'expected_log_mean'), dtype=float)
        by_sample = cluster_log_likelihoods + expected_log_mean.reshape(1, -1)

        with np.errstate(divide='ignore', invalid='ignore'):
            log_norm = logsumexp(by_sample, axis=1)
        bad_rows = ~np.isfinite(log_norm)
        if np.any(bad_rows):
            raise NumericalError(
                f"{bad_rows.sum()} responsibility rows cannot be normalized "
                f"(first at sample {np.flatnonzero(bad_rows)[0]})"
            )

        memberships = np.exp(by_sample - log_norm[:, np.newaxis])
        memberships /= memberships.sum(axis=1, keepdims=True)

        training.variational_cluster_log_likelihoods = cluster_log_likelihoods
        training.variational_log_likelihood_by_sample = by_sample
        training.component_memberships = memberships

        return self, training

    def vb_nfe(
        self,
        prior: 'VBMixture',
        x: np.ndarray,
        training: TrainingState
    ) -> Tuple[float, float, float, KldDetails]:
        """
        Negative free energy of the current posteriors.

        kld = sum of component KLDs + mixing KLD - sum(r * log r)
        nfe = sum_n logsumexp_k(log-responsibility_nk) - kld

        Returns:
            Tuple of (nfe, e_log_likelihood, kld, kld_details).
        """
        source_klds = np.array(self._map_components(
            lambda s: float(_operation(self.components[s], 'conjugate_kld')(prior.components[s]))
        ))
        mixing_kld = float(_operation(self.mixing, 'conjugate_kld')(prior.mixing))

        r = training.component_memberships
        entropy_term = float(-np.sum(xlogy(r, r)))

        kld = float(source_klds.sum() + mixing_kld + entropy_term)

        with np.errstate(divide='ignore', invalid='ignore'):
            e_log_likelihood = float(np.sum(
                logsumexp(training.variational_log_likelihood_by_sample, axis=1)
            ))

        kld_details = KldDetails(sources=source_klds, mixing=mixing_kld, entropy=entropy_term)
        return e_log_likelihood - kld, e_log_likelihood, kld, kld_details

    def vb_is_converged(
        self,
        prior: 'VBMixture',
        x: np.ndarray,
        training: TrainingState
    ) -> Tuple[bool, bool]:
        """
        Compare the latest NFE change against the configured tolerances.

        Returns:
            Tuple of (converged, err). err is set for a non-finite NFE or a
            decrease larger than decrease_tolerance * max(1, |previous NFE|).
            The decrease slack is relative, not absolute: at an NFE near
            -2000 the default 1e-6 tolerates a drop of about 2e-3. Set
            decrease_tolerance=0 to flag any decrease at all.
        """
        nfe = training.negative_free_energy
        previous = training.previous_negative_free_energy

        if not np.isfinite(nfe):
            return False, True

        change = nfe - previous
        if abs(change) < self.config.convergence_tolerance:
            return True, False

        if change < -self.config.decrease_tolerance * max(1.0, abs(previous)):
            warnings.warn(
                f"Negative free energy decreased by {-change:.3e} at iteration "
                f"{training.n_iterations}; stopping VB iterations.",
                RuntimeWarning
            )
            return False, True

        return False, False

    # =========================================================================
    # Online VB
    # =========================================================================

    def vb_online_initialize(self, x: Any) -> Tuple['VBMixture', 'VBMixture', TrainingState]:
        """
        Initialize for streaming inference.

        Returns:
            Tuple of (model, prior snapshot, fresh TrainingState).
        """
        x = parse_input_data(x)
        self._check_dimensions(x)
        rng = check_random_state(self.config.random_state)

        model = self.initialize(x)
        prior = model._prior_snapshot()

        mixing = _operation(model.mixing, 'vb_online_initialize')(None, random_state=rng)
        components = tuple(
            _operation(c, 'vb_online_initialize')(x, random_state=rng)
            for c in model.components
        )

        training = TrainingState()
        training.n_samples_per_component = np.zeros(self.n_components)

        model = model._replace(components=components, mixing=mixing, n_samples=0, vb_online_t=0)
        return model, prior, training

    def vb_online_update(
        self,
        prior: 'VBMixture',
        x: Any,
        training: Optional[TrainingState] = None,
        previous: Optional['VBMixture'] = None,
        learning_rate: Optional[float] = None,
        D: Optional[float] = None,
        sample_weights: Optional[np.ndarray] = None
    ) -> Tuple['VBMixture', TrainingState]:
        """
        One stochastic VB step on a mini-batch.

        Args:
            prior: Prior snapshot from vb_online_initialize.
            x: Mini-batch of observations.
            training: State holding the batch responsibilities; when omitted
                      one E-step of the current model produces it.
            previous: Model to blend from (default: self).
            learning_rate: Step size in (0, 1] (default: config.online_learning_rate).
            D: Effective sample size (default: config.online_forgetting_horizon,
               or the batch size when that is None).
            sample_weights: Optional per-sample weights applied to the
                            responsibilities.

        Returns:
            Tuple of (updated model, training state).
        """
        x = parse_input_data(x)
        cfg = self.config

        if learning_rate is None:
            learning_rate = cfg.online_learning_rate
        check_learning_rate(learning_rate)
        if D is None:
            D = cfg.online_forgetting_horizon if cfg.online_forgetting_horizon is not None else x.shape[0]
        check_horizon(D)

        if previous is None:
            previous = self

        model = self
        if training is None:
            training = TrainingState()
            model, training = self.vb_e(prior, x, training)

        r = self._batch_memberships(x, training)
        w = check_weights(sample_weights, x.shape[0])
        weighted = r * w[:, np.newaxis]

        components = self._map_components(
            lambda s: _operation(model.components[s], 'vb_online_weighted_update')(
                prior.components[s], x, weighted[:, s], learning_rate, D, previous.components[s]
            )
        )
        mixing = _operation(model.mixing, 'vb_online_weighted_update')(
            prior.mixing, r, w, learning_rate, D, previous.mixing
        )

        training.n_samples_per_component = weighted.sum(axis=0)

        return model._replace(components=components, mixing=mixing), training

    def vb_online(
        self,
        x: Any,
        batch_size: int,
        n_passes: int = 1,
        learning_rate: Any = None,
        D: Optional[float] = None
    ) -> Tuple['VBMixture', TrainingState]:
        """
        Stream x through vb_online_update in mini-batches.

        Args:
            x: Observations, consumed in row order.
            batch_size: Rows per mini-batch.
            n_passes: Number of sweeps over x.
            learning_rate: Float, schedule name or LearningRateSchedule
                           (default: config.online_learning_rate).
            D: Effective sample size (default: len(x)).

        Returns:
            Tuple of:
                - Posterior VBMixture
                - TrainingState with per-batch NFE history and final
                  responsibilities of x
        """
        x = parse_input_data(x)
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if n_passes < 1:
            raise ValueError(f"n_passes must be >= 1, got {n_passes}")

        cfg = self.config
        schedule = create_schedule(learning_rate if learning_rate is not None else cfg.online_learning_rate)
        D = x.shape[0] if D is None else D

        monitor = ResourceMonitor()
        monitor.start()

        model, prior, training = self.vb_online_initialize(x)

        starts = [start for _ in range(n_passes) for start in range(0, x.shape[0], batch_size)]
        for t, start in enumerate(tqdm(starts, desc='VB online', disable=not cfg.verbose_text)):
            batch = x[start:start + batch_size]

            model, batch_training = model.vb_e(prior, batch, TrainingState())
            model, batch_training = model.vb_online_update(
                prior, batch, batch_training,
                learning_rate=schedule.get_learning_rate(t), D=D
            )

            _, scored = model.vb_e(prior, batch, TrainingState())
            nfe, e_log_likelihood, kld, kld_details = model.vb_nfe(prior, batch, scored)
            training.record_iteration(t + 1, nfe, e_log_likelihood, kld)
            training.kld_details = kld_details
            monitor.sample()

        model, training = model.vb_e(prior, x, training)
        training.n_samples_per_component = training.component_memberships.sum(axis=0)
        training.finish('completed', monitor.stop())

        return model, training

    # =========================================================================
    # Non-Stationary VB
    # =========================================================================

    def vb_nonstationary_update(
        self,
        prior: 'VBMixture',
        x: Any,
        training: Optional[TrainingState] = None,
        previous: Optional['VBMixture'] = None
    ) -> Tuple['VBMixture', TrainingState]:
        """
        One VB step with stabilized forgetting.

        Each component first gets a plain conjugate update of `previous`
        with the batch (the base density), which is then blended with the
        long-run prior using config.nonstationary_lambda and
        config.nonstationary_d.

        Args:
            prior: Prior snapshot.
            x: Mini-batch of observations.
            training: State holding the batch responsibilities; when omitted
                      one E-step of the current model produces it.
            previous: Model the base density starts from (default: self).

        Returns:
            Tuple of (updated model, training state).
        """
        x = parse_input_data(x)
        cfg = self.config

        if previous is None:
            previous = self

        model = self
        if training is None:
            training = TrainingState()
            model, training = self.vb_e(prior, x, training)

        r = self._batch_memberships(x, training)
        n_samples = self.n_samples + x.shape[0]
        lam, D = cfg.nonstationary_lambda, cfg.nonstationary_d

        def update(s):
            previous_component = previous.components[s]
            base_density = _operation(previous_component, 'weighted_conjugate_update')(
                previous_component, x, r[:, s]
            )
            return _operation(model.components[s], 'vb_online_weighted_update')(
                prior.components[s], x, r[:, s], lam, D, base_density
            )

        components = self._map_components(update)

        base_mixing = _operation(previous.mixing, 'weighted_conjugate_update')(
            previous.mixing, r, None
        )
        mixing = _operation(model.mixing, 'vb_online_weighted_update')(
            prior.mixing, r, None, lam, D, base_mixing
        )

        training.n_samples_per_component = r.sum(axis=0)

        model = model._replace(
            components=components,
            mixing=mixing,
            n_samples=n_samples,
            vb_online_t=n_samples
        )
        return model, training

    # =========================================================================
    # Mixture as a Density
    # =========================================================================

    def conjugate_variational_average_log_likelihood(self, x: Any) -> np.ndarray:
        """Per-sample logsumexp of the unnormalized log-responsibilities."""
        x = parse_input_data(x)
        _, training = self.vb_e(self, x, TrainingState())
        return logsumexp(training.variational_log_likelihood_by_sample, axis=1)

    def predict_proba(self, x: Any) -> np.ndarray:
        """Responsibilities of new observations under the current posterior."""
        x = parse_input_data(x)
        _, training = self.vb_e(self, x, TrainingState())
        return training.component_memberships

    def predict(self, x: Any) -> np.ndarray:
        """Most responsible component for each observation."""
        return np.argmax(self.predict_proba(x), axis=1)

    def weighted_conjugate_update(
        self,
        prior: 'VBMixture',
        x: Any,
        weights: Optional[np.ndarray],
        training: TrainingState
    ) -> 'VBMixture':
        """
        M-step with external per-sample weights multiplying the
        responsibilities in `training`.
        """
        x = parse_input_data(x)
        r = self._batch_memberships(x, training)
        weighted = r * check_weights(weights, x.shape[0])[:, np.newaxis]

        components = self._map_components(
            lambda s: _operation(self.components[s], 'weighted_conjugate_update')(
                prior.components[s], x, weighted[:, s]
            )
        )

        training.n_samples_per_component = weighted.sum(axis=0)
        mixing = _operation(self.mixing, 'conjugate_update')(
            prior.mixing, training.n_samples_per_component
        )
        return self._replace(components=components, mixing=mixing)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _replace(self, **attributes) -> 'VBMixture':
        new = copy.copy(self)
        for name, value in attributes.items():
            setattr(new, name, tuple(value) if name == 'components' else value)
        return new

    def _prior_snapshot(self) -> 'VBMixture':
        """Copy of the posteriors; config and observer are shared by reference."""
        return self._replace(
            components=copy.deepcopy(self.components),
            mixing=copy.deepcopy(self.mixing)
        )

    def _map_components(self, fn: Callable[[int], Any]) -> tuple:
        """Apply fn to every component index, in threads when n_jobs > 1."""
        indices = range(self.n_components)
        n_jobs = min(self.config.n_jobs, self.n_components)
        if n_jobs > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as executor:
                return tuple(executor.map(fn, indices))
        return tuple(fn(s) for s in indices)

    def _check_dimensions(self, x: np.ndarray) -> None:
        for s, component in enumerate(self.components):
            d = getattr(component, 'n_dimensions', None)
            if d is not None and d != x.shape[1]:
                raise InputValidationError(
                    f"Component {s} expects {d} dimensions, observations have {x.shape[1]}"
                )

    def _batch_memberships(self, x: np.ndarray, training: TrainingState) -> np.ndarray:
        r = training.component_memberships
        if r is None or r.shape != (x.shape[0], self.n_components):
            raise InputValidationError(
                f"training.component_memberships must have shape "
                f"{(x.shape[0], self.n_components)}, got {None if r is None else r.shape}"
            )
        return r

    def _notify(self, x: np.ndarray, training: TrainingState, iteration: int) -> None:
        if self.observer is None:
            return
        every = self.config.verbose_plot_every_n_iterations
        if every == 0:
            return
        if (iteration - 1) % every == 0:
            self.observer(self, x, training.snapshot())

    def __repr__(self) -> str:
        return (f"VBMixture(n_components={self.n_components}, "
                f"n_dimensions={self.n_dimensions}, mixing={self.mixing!r})")


# =============================================================================
# Input Parsing
# =============================================================================

def parse_input_data(x: Any) -> np.ndarray:
    """
    Coerce observations into a 2-D float array.

    Accepts array-likes and dataset objects exposing get_observations().

    Raises:
        InputValidationError: If x is not a 2-D numeric matrix.
    """
    if hasattr(x, 'get_observations'):
        x = x.get_observations()

    try:
        arr = np.asarray(x)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"Observations could not be converted to an array: {e}")

    if arr.dtype == bool:
        arr = arr.astype(float)
    if not np.issubdtype(arr.dtype, np.number) or np.issubdtype(arr.dtype, np.complexfloating):
        raise InputValidationError(
            f"VB mixture requires a numeric 2-D matrix, got dtype {arr.dtype}"
        )
    if arr.ndim != 2:
        raise InputValidationError(
            f"VB mixture requires a numeric 2-D matrix, got {arr.ndim} dimensions"
        )

    return arr.astype(float, copy=False)


def parse_labels(labels: Any, n_samples: int) -> np.ndarray:
    """
    Coerce binary labels to an (n_samples, 2) one-hot matrix.

    Args:
        labels: (n, 2) one-hot matrix (negative, positive) or 0/1 vector.
        n_samples: Expected number of rows.

    Raises:
        InputValidationError: If labels are not binary or do not match.
    """
    labels = np.asarray(labels)
    if labels.ndim == 1:
        if not np.all(np.isin(labels, (0, 1))):
            raise InputValidationError("Label vector must contain only 0 and 1")
        labels = np.column_stack([labels == 0, labels == 1])

    labels = labels.astype(float)
    if labels.shape != (n_samples, 2):
        raise InputValidationError(
            f"labels must have shape ({n_samples}, 2), got {labels.shape}"
        )
    if not np.all(np.isin(labels, (0.0, 1.0))) or not np.all(labels.sum(axis=1) == 1):
        raise InputValidationError("labels must be one-hot rows of 0 and 1")

    return labels


def _operation(obj: Any, name: str) -> Callable:
    op = getattr(obj, name, None)
    if not callable(op):
        raise ContractError(obj, name)
    return op


def _attribute(obj: Any, name: str) -> Any:
    try:
        return getattr(obj, name)
    except AttributeError:
        raise ContractError(obj, name)
